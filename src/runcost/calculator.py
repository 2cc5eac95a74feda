import asyncio
import functools
import time
from datetime import datetime, timedelta, timezone

import structlog

from runcost.aggregator import aggregate
from runcost.metrics import MetricsUpdater
from runcost.provider.base import RunProvider
from runcost.provider.github import parse_repository
from runcost.store import ResultStore, Status, StoredResult

logger = structlog.get_logger()

# keep stored results for one day by default
_DEFAULT_EVICTION_AGE_SECONDS = 86400


class Calculator:
    """
    Calculator is responsible for orchestrating cost calculations
    of repositories. It lists the runs of the sampling window from
    the provider, aggregates them, stores the result and publishes
    it as metrics. Results stay cached for cache_ttl_seconds, and
    run() recalculates a set of repositories periodically until
    stop() is called.
    """

    def __init__(
        self,
        provider: "RunProvider",
        store: "ResultStore",
        metrics_updater: "MetricsUpdater",
        days: "int" = 7,
        cache_ttl_seconds: "int" = 3600,
        concurrency: "int" = 10,
    ) -> "None":
        self._provider = provider
        self._store = store
        self._metrics = metrics_updater
        self._days = days
        self._cache_ttl = cache_ttl_seconds
        self._concurrency = concurrency
        self._stop_event: "asyncio.Event" = asyncio.Event()

    def stop(self) -> "None":
        """
        signals the calculation loop to stop after the current cycle.
        """
        self._stop_event.set()

    async def close(self) -> "None":
        """
        closes the provider session.
        """
        await self._provider.close()

    async def calculate(self, slug: "str", force: "bool" = False) -> "StoredResult":
        """
        calculates the cost estimate of slug and returns its stored
        record. A fresh completed record, or one whose calculation
        is already pending, is returned as is unless force is set.
        Failures are recorded on the returned record, not raised.
        """
        now = time.time()

        if not force and self._store.is_fresh(slug, now, self._cache_ttl):
            logger.debug("calculation_cached", repository=slug)
            return self._store.get(slug)

        if not self._store.mark_pending(slug, now):
            logger.info("calculation_in_progress", repository=slug)
            return self._store.get(slug)

        started = time.monotonic()
        logger.info("calculation_start", repository=slug, days=self._days)

        try:
            parse_repository(slug)
            since = (datetime.now(timezone.utc) - timedelta(days=self._days)).date()
            runs = await self._provider.list_runs(slug, since)
            logger.info("runs_found", repository=slug, run_count=len(runs))

            result = await aggregate(
                runs,
                functools.partial(self._provider.fetch_usage, slug),
                functools.partial(self._provider.fetch_jobs, slug),
                self._days,
                repository=slug,
                concurrency=self._concurrency,
            )

        except Exception as e:
            logger.exception("calculation_error", repository=slug)
            self._metrics.inc_calculation_error(slug)
            return self._store.fail(slug, str(e) or type(e).__name__)

        else:
            record = self._store.complete(slug, result)
            self._metrics.update_result(result)
            self._metrics.set_last_calculation_success(slug, record.updated_at)
            logger.info(
                "calculation_end",
                repository=slug,
                analyzed_runs=result.analyzed_runs,
                total_runs=result.total_runs,
                monthly_cost=result.monthly_cost,
            )
            return record

        finally:
            self._metrics.observe_calculation_duration(
                slug, time.monotonic() - started
            )
            # a cancelled calculation must not stay pending
            current = self._store.get(slug)
            if current is not None and current.status is Status.PENDING:
                logger.warning("calculation_cancelled", repository=slug)
                self._store.fail(slug, "Calculation cancelled")

    async def run(self, repositories: "list[str]", interval: "int") -> "None":
        """
        runs the main calculation loop. Runs until stop() is called.
        """
        while not self._stop_event.is_set():
            logger.info("calculation_cycle_start", repositories=len(repositories))

            # evict repositories that are no longer recalculated
            eviction_cutoff = time.time() - _DEFAULT_EVICTION_AGE_SECONDS
            evicted = self._store.evict_before(eviction_cutoff)
            if evicted:
                logger.debug("results_evicted", count=evicted, cutoff=eviction_cutoff)

            records = await asyncio.gather(
                *(self.calculate(slug, force=True) for slug in repositories)
            )
            failed = sum(1 for record in records if record.status is Status.ERROR)
            logger.info("calculation_cycle_end", failed=failed)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except TimeoutError:
                pass
