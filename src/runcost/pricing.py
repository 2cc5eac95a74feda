from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType
from typing import Iterable, Mapping

from runcost.models import (
    AuthoritativeUsage,
    ClassUsage,
    CostBreakdown,
    JobRecord,
    OSClass,
)

# per-minute rates in USD for private repositories
PRICING: "Mapping[OSClass, float]" = MappingProxyType(
    {
        OSClass.LINUX: 0.008,
        # 2x Linux
        OSClass.WINDOWS: 0.016,
        # 10x Linux
        OSClass.MACOS: 0.08,
    }
)

_MS_PER_MINUTE = 60_000

# each tuple is (os_class, label substrings); checked in order, first match wins
_LABEL_PATTERNS: "list[tuple[OSClass, tuple[str, ...]]]" = [
    (OSClass.MACOS, ("macos", "mac-os")),
    (OSClass.WINDOWS, ("windows",)),
]


@dataclass(frozen=True, slots=True)
class Authoritative:
    """
    Authoritative wraps a breakdown computed from the
    provider's billable usage data.
    """

    breakdown: "CostBreakdown"


class Insufficient:
    """
    Insufficient signals that billable usage carried no data,
    so costs have to be derived from the run's jobs instead.
    """

    def __repr__(self) -> "str":
        return "INSUFFICIENT"


INSUFFICIENT = Insufficient()


def breakdown_from_minutes(minutes_by_os: "Mapping[OSClass, float]") -> "CostBreakdown":
    """
    prices the given minutes per OS class. Classes missing from
    the mapping get zero minutes.
    """
    by_os: "dict[OSClass, ClassUsage]" = {}
    for os_class in OSClass:
        minutes = minutes_by_os.get(os_class, 0.0)
        by_os[os_class] = ClassUsage(minutes=minutes, cost=minutes * PRICING[os_class])
    return CostBreakdown(by_os=by_os)


def classify_runner_os(labels: "Iterable[str]") -> "OSClass":
    """
    classifies a job's runner from its labels. Matching is a
    case-insensitive substring search, macOS is checked before
    Windows and anything else is treated as Linux.
    """
    labels_lower = [label.lower() for label in labels]

    for os_class, needles in _LABEL_PATTERNS:
        if any(needle in label for label in labels_lower for needle in needles):
            return os_class

    return OSClass.LINUX


def compute_from_authoritative(
    usage: "AuthoritativeUsage | None",
) -> "Authoritative | Insufficient":
    """
    computes a breakdown from billable milliseconds per OS class.
    Returns INSUFFICIENT when no class reports a positive duration.
    """
    if not usage:
        return INSUFFICIENT

    minutes_by_os: "dict[OSClass, float]" = {}
    for os_class, entry in usage.items():
        if entry.total_ms > 0:
            minutes_by_os[os_class] = entry.total_ms / _MS_PER_MINUTE

    if not minutes_by_os:
        return INSUFFICIENT

    return Authoritative(breakdown_from_minutes(minutes_by_os))


def compute_from_jobs(jobs: "Iterable[JobRecord]") -> "CostBreakdown":
    """
    computes a breakdown from job timestamps and runner labels.
    Jobs missing a start or end timestamp are skipped and a job
    ending before it started counts as zero minutes.
    """
    minutes_by_os: "dict[OSClass, float]" = {os_class: 0.0 for os_class in OSClass}

    for job in jobs:
        if job.started_at is None or job.completed_at is None:
            continue

        duration_ms = (job.completed_at - job.started_at) / timedelta(milliseconds=1)
        minutes = max(duration_ms, 0.0) / _MS_PER_MINUTE
        minutes_by_os[classify_runner_os(job.labels)] += minutes

    return breakdown_from_minutes(minutes_by_os)
