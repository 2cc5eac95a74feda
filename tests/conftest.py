from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from prometheus_client import CollectorRegistry

from runcost.models import JobRecord, WorkflowRun

T0 = datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture()
def make_run() -> "Callable[..., WorkflowRun]":
    def _make(run_id: "int" = 1, name: "str" = "CI") -> "WorkflowRun":
        return WorkflowRun(
            id=run_id,
            name=name,
            run_number=run_id,
            conclusion="success",
            created_at=T0,
        )

    return _make


@pytest.fixture()
def make_job() -> "Callable[..., JobRecord]":
    """
    builds a job starting at T0 and lasting the given milliseconds.
    """

    def _make(duration_ms: "int", *labels: "str") -> "JobRecord":
        return JobRecord(
            started_at=T0,
            completed_at=T0 + timedelta(milliseconds=duration_ms),
            labels=labels,
        )

    return _make
