from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping

# horizons used to extrapolate a sampling window
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365


def projection_multiplier(horizon_days: "int", days: "int") -> "float":
    """
    ratio extrapolating a sampling window of days to horizon_days.
    """
    return horizon_days / days


class OSClass(str, Enum):
    """
    OSClass is the closed set of runner operating systems
    that carry a distinct per-minute rate.
    """

    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """
    WorkflowRun represents a single completed workflow
    execution of a repository.
    """

    id: "int"
    name: "str"
    run_number: "int"
    # outcome of the run, e.g. success / failure / cancelled
    conclusion: "str"
    created_at: "datetime"


@dataclass(frozen=True, slots=True)
class JobRecord:
    """
    JobRecord represents one job of a workflow run, executed
    on a single runner.
    """

    # either timestamp is None for jobs that never started or finished
    started_at: "datetime | None"
    completed_at: "datetime | None"
    labels: "tuple[str, ...]" = ()


@dataclass(frozen=True, slots=True)
class UsageEntry:
    """
    UsageEntry is the billable time the provider reports
    for one OS class of a run.
    """

    total_ms: "int"
    jobs: "int" = 0


# billable usage of a run as reported by the provider, keyed by OS class
AuthoritativeUsage = Mapping[OSClass, UsageEntry]


@dataclass(frozen=True, slots=True)
class ClassUsage:
    minutes: "float" = 0.0
    cost: "float" = 0.0


@dataclass(frozen=True)
class CostBreakdown:
    """
    CostBreakdown holds minutes and cost per OS class for a
    single run. Build it with pricing.breakdown_from_minutes
    so that every cost matches its minutes.
    """

    by_os: "dict[OSClass, ClassUsage]" = field(
        default_factory=lambda: {os_class: ClassUsage() for os_class in OSClass}
    )

    def minutes(self, os_class: "OSClass") -> "float":
        return self.by_os.get(os_class, ClassUsage()).minutes

    def cost(self, os_class: "OSClass") -> "float":
        return self.by_os.get(os_class, ClassUsage()).cost

    @property
    def total(self) -> "float":
        return sum(self.cost(os_class) for os_class in OSClass)


class UsageSource(str, Enum):
    # provider-reported billable time
    BILLABLE = "billable"
    # derived from job timestamps
    JOBS = "jobs"


@dataclass(frozen=True, slots=True)
class RunCost:
    """
    RunCost is the analysis of a single run. breakdown and
    source are None when neither billable usage nor jobs could
    be fetched.
    """

    run: "WorkflowRun"
    breakdown: "CostBreakdown | None" = None
    source: "UsageSource | None" = None
    # billed jobs for BILLABLE, timed jobs for JOBS
    job_count: "int" = 0

    @property
    def analyzed(self) -> "bool":
        return self.breakdown is not None

    def to_dict(self) -> "dict[str, object]":
        breakdown = self.breakdown
        return {
            "id": self.run.id,
            "name": self.run.name,
            "run_number": self.run.run_number,
            "conclusion": self.run.conclusion,
            "created_at": self.run.created_at.isoformat(),
            "source": self.source.value if self.source else None,
            "job_count": self.job_count,
            "minutes": {
                os_class.value: breakdown.minutes(os_class) for os_class in OSClass
            }
            if breakdown
            else None,
            "cost": breakdown.total if breakdown else None,
        }


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """
    AggregateResult is the outcome of one calculation pass over
    the runs of a sampling window, including the extrapolated
    monthly and yearly costs.
    """

    repository: "str"
    days_analyzed: "int"
    total_runs: "int"
    analyzed_runs: "int"
    linux_minutes: "float"
    windows_minutes: "float"
    macos_minutes: "float"
    actual_cost: "float"
    monthly_cost: "float"
    yearly_cost: "float"
    # per-run analyses in listing order, empty when only totals were reduced
    runs: "tuple[RunCost, ...]" = ()

    @property
    def monthly_multiplier(self) -> "float":
        return projection_multiplier(DAYS_PER_MONTH, self.days_analyzed)

    @property
    def yearly_multiplier(self) -> "float":
        return projection_multiplier(DAYS_PER_YEAR, self.days_analyzed)

    def minutes_for(self, os_class: "OSClass") -> "float":
        return {
            OSClass.LINUX: self.linux_minutes,
            OSClass.WINDOWS: self.windows_minutes,
            OSClass.MACOS: self.macos_minutes,
        }[os_class]

    def projected_minutes(self, os_class: "OSClass", horizon_days: "int") -> "float":
        """
        extrapolates the sampled minutes of an OS class to a
        horizon of horizon_days using the same ratio as the costs.
        """
        return self.minutes_for(os_class) * projection_multiplier(
            horizon_days, self.days_analyzed
        )

    def to_dict(self) -> "dict[str, object]":
        return {
            "repository": self.repository,
            "days_analyzed": self.days_analyzed,
            "total_runs": self.total_runs,
            "analyzed_runs": self.analyzed_runs,
            "linux_minutes": self.linux_minutes,
            "windows_minutes": self.windows_minutes,
            "macos_minutes": self.macos_minutes,
            "actual_cost": self.actual_cost,
            "monthly_cost": self.monthly_cost,
            "yearly_cost": self.yearly_cost,
            "runs": [run_cost.to_dict() for run_cost in self.runs],
        }
