import asyncio
from typing import Awaitable, Callable, Iterable, Sequence

import structlog

from runcost.exceptions import InvalidWindowError, UsageNotAvailableError
from runcost.models import (
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    AggregateResult,
    AuthoritativeUsage,
    CostBreakdown,
    JobRecord,
    OSClass,
    RunCost,
    UsageSource,
    WorkflowRun,
    projection_multiplier,
)
from runcost.pricing import Authoritative, compute_from_authoritative, compute_from_jobs

logger = structlog.get_logger()

UsageFetcher = Callable[[WorkflowRun], Awaitable[AuthoritativeUsage]]
JobsFetcher = Callable[[WorkflowRun], Awaitable[Sequence[JobRecord]]]

_DEFAULT_CONCURRENCY = 10


def _check_window(days: "int") -> "None":
    if days <= 0:
        raise InvalidWindowError(days)


async def analyze_run(
    run: "WorkflowRun",
    fetch_usage: "UsageFetcher",
    fetch_jobs: "JobsFetcher",
) -> "RunCost":
    """
    computes the breakdown of a single run. Billable usage is
    preferred; when it is unavailable or empty the run's jobs
    are used instead. The returned RunCost has no breakdown when
    neither source could be fetched.
    """
    try:
        usage = await fetch_usage(run)
    except UsageNotAvailableError:
        logger.debug("run_usage_unavailable", run_id=run.id)
    except Exception as e:
        logger.warning("run_usage_fetch_error", run_id=run.id, error=str(e))
    else:
        outcome = compute_from_authoritative(usage)
        if isinstance(outcome, Authoritative):
            return RunCost(
                run=run,
                breakdown=outcome.breakdown,
                source=UsageSource.BILLABLE,
                job_count=sum(entry.jobs for entry in usage.values()),
            )
        logger.debug("run_usage_insufficient", run_id=run.id)

    try:
        jobs = await fetch_jobs(run)
    except Exception:
        logger.exception("run_jobs_fetch_error", run_id=run.id)
        return RunCost(run=run)

    return RunCost(
        run=run,
        breakdown=compute_from_jobs(jobs),
        source=UsageSource.JOBS,
        job_count=sum(
            1
            for job in jobs
            if job.started_at is not None and job.completed_at is not None
        ),
    )


def summarize(
    repository: "str",
    days: "int",
    total_runs: "int",
    breakdowns: "Iterable[CostBreakdown | None]",
    runs: "Iterable[RunCost]" = (),
) -> "AggregateResult":
    """
    reduces per-run breakdowns into the aggregate of a sampling
    window of the given days. None entries stand for runs that
    could not be analyzed. runs, when given, is kept on the result
    for per-run reporting.
    """
    _check_window(days)

    minutes: "dict[OSClass, float]" = {os_class: 0.0 for os_class in OSClass}
    actual_cost = 0.0
    analyzed_runs = 0

    for breakdown in breakdowns:
        if breakdown is None:
            continue
        for os_class in OSClass:
            minutes[os_class] += breakdown.minutes(os_class)
        actual_cost += breakdown.total
        analyzed_runs += 1

    return AggregateResult(
        repository=repository,
        days_analyzed=days,
        total_runs=total_runs,
        analyzed_runs=analyzed_runs,
        linux_minutes=minutes[OSClass.LINUX],
        windows_minutes=minutes[OSClass.WINDOWS],
        macos_minutes=minutes[OSClass.MACOS],
        actual_cost=actual_cost,
        monthly_cost=actual_cost * projection_multiplier(DAYS_PER_MONTH, days),
        yearly_cost=actual_cost * projection_multiplier(DAYS_PER_YEAR, days),
        runs=tuple(runs),
    )


async def aggregate(
    runs: "Sequence[WorkflowRun]",
    fetch_usage: "UsageFetcher",
    fetch_jobs: "JobsFetcher",
    days: "int",
    *,
    repository: "str" = "",
    concurrency: "int" = _DEFAULT_CONCURRENCY,
) -> "AggregateResult":
    """
    analyzes all runs of a sampling window and extrapolates their
    cost. Runs are fetched concurrently, at most `concurrency` at a
    time, and reduced in their original order once all of them
    completed. A failing run is left out of analyzed_runs and never
    aborts the batch.

    Raises InvalidWindowError when days is not positive.
    """
    _check_window(days)

    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _bounded(run: "WorkflowRun") -> "RunCost":
        async with semaphore:
            return await analyze_run(run, fetch_usage, fetch_jobs)

    run_costs = await asyncio.gather(*(_bounded(run) for run in runs))

    result = summarize(
        repository,
        days,
        len(runs),
        [run_cost.breakdown for run_cost in run_costs],
        runs=run_costs,
    )
    logger.info(
        "runs_aggregated",
        repository=repository,
        total_runs=result.total_runs,
        analyzed_runs=result.analyzed_runs,
        actual_cost=result.actual_cost,
    )
    return result
