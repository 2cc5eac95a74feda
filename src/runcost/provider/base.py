from datetime import date
from typing import Protocol, Sequence

from runcost.models import AuthoritativeUsage, JobRecord, WorkflowRun


class RunProvider(Protocol):
    """
    RunProvider stands as a common protocol that all
    CI hosting providers must satisfy.

    Providers list the completed workflow runs of a repository
    and fetch, per run, its billable usage and its jobs, returning
    provider-agnostic record objects.
    """

    @property
    def name(self) -> "str": ...

    async def list_runs(
        self,
        slug: "str",
        since: "date",
    ) -> "Sequence[WorkflowRun]": ...

    async def fetch_usage(
        self,
        slug: "str",
        run: "WorkflowRun",
    ) -> "AuthoritativeUsage": ...

    async def fetch_jobs(
        self,
        slug: "str",
        run: "WorkflowRun",
    ) -> "Sequence[JobRecord]": ...

    async def close(self) -> "None": ...
