import json

import pytest
from prometheus_client import CollectorRegistry
from structlog.testing import capture_logs

from runcost.__main__ import _parse_listen_address, _report
from runcost.calculator import Calculator
from runcost.metrics import MetricsUpdater
from runcost.models import OSClass, UsageEntry
from runcost.store import ResultStore


class EmptyProvider:
    @property
    def name(self) -> "str":
        return "empty"

    async def list_runs(self, slug: "str", since: "object") -> "list[object]":
        return []

    async def fetch_usage(self, slug: "str", run: "object") -> "dict[object, object]":
        return {}

    async def fetch_jobs(self, slug: "str", run: "object") -> "list[object]":
        return []

    async def close(self) -> "None":
        pass


class BilledProvider(EmptyProvider):
    def __init__(self, runs: "list[object]") -> "None":
        self._runs = runs

    async def list_runs(self, slug: "str", since: "object") -> "list[object]":
        return self._runs

    async def fetch_usage(self, slug: "str", run: "object") -> "dict[object, object]":
        return {OSClass.LINUX: UsageEntry(total_ms=120000, jobs=1)}


class TestParseListenAddress:
    def test_port_only(self) -> "None":
        assert _parse_listen_address(":9186") == ("0.0.0.0", 9186)

    def test_host_and_port(self) -> "None":
        assert _parse_listen_address("127.0.0.1:9000") == ("127.0.0.1", 9000)


class TestReport:
    @pytest.mark.asyncio
    async def test_prints_summaries_and_counts_failures(
        self,
        registry: "CollectorRegistry",
        capsys: "pytest.CaptureFixture[str]",
    ) -> "None":
        calculator = Calculator(
            EmptyProvider(), ResultStore(), MetricsUpdater(registry=registry)
        )

        failed = await _report(calculator, ["octo/repo", "broken"])

        out = capsys.readouterr().out
        assert failed == 1
        assert "Analyzed runs: 0/0" in out
        assert "broken: Error - Invalid repository format. Use: owner/repo" in out

    @pytest.mark.asyncio
    async def test_lists_runs_before_summary(
        self,
        registry: "CollectorRegistry",
        capsys: "pytest.CaptureFixture[str]",
        make_run: "object",
    ) -> "None":
        calculator = Calculator(
            BilledProvider([make_run(1, "CI"), make_run(2, "Docs")]),
            ResultStore(),
            MetricsUpdater(registry=registry),
        )

        failed = await _report(calculator, ["octo/repo"], show_runs=True)

        out = capsys.readouterr().out
        assert failed == 0
        assert "Run #1: CI" in out
        assert "Run #2: Docs" in out
        assert "  Source: billable timing (1 jobs)" in out
        assert "  Linux: 2.00 min -> $0.0160" in out
        assert out.index("Run #1: CI") < out.index("Run #2: Docs") < out.index("SUMMARY")

    @pytest.mark.asyncio
    async def test_runs_are_hidden_by_default(
        self,
        registry: "CollectorRegistry",
        capsys: "pytest.CaptureFixture[str]",
        make_run: "object",
    ) -> "None":
        calculator = Calculator(
            BilledProvider([make_run(1)]), ResultStore(), MetricsUpdater(registry=registry)
        )

        await _report(calculator, ["octo/repo"])

        out = capsys.readouterr().out
        assert "Run #1" not in out
        assert "Analyzed runs: 1/1" in out

    @pytest.mark.asyncio
    async def test_json_output(
        self,
        registry: "CollectorRegistry",
        capsys: "pytest.CaptureFixture[str]",
        make_run: "object",
    ) -> "None":
        calculator = Calculator(
            BilledProvider([make_run(1, "CI")]),
            ResultStore(),
            MetricsUpdater(registry=registry),
        )

        with capture_logs() as logs:
            failed = await _report(calculator, ["octo/repo"], output="json")

        # stdout holds nothing but the report
        data = json.loads(capsys.readouterr().out)
        assert "calculation_end" in [entry["event"] for entry in logs]
        assert failed == 0
        assert data["repository"] == "octo/repo"
        assert data["analyzed_runs"] == 1
        assert data["linux_minutes"] == 2.0
        assert data["runs"][0]["name"] == "CI"
        assert data["runs"][0]["source"] == "billable"
