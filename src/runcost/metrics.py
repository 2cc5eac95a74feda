from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from runcost.models import AggregateResult, OSClass


def create_estimate_metrics(
    registry: "CollectorRegistry" = REGISTRY,
) -> "dict[str, Gauge]":
    """
    creates the metric families describing the latest estimate
    of every repository.
     - minutes: sampled runner minutes, labeled by repository
     and os.
     - actual_cost_usd: cost of the sampled window.
     - projected_cost_usd: extrapolated cost, labeled by horizon
     (monthly/yearly).
     - runs: discovered and analyzed runs, labeled by state
     (total/analyzed).
     - window_days: length of the sampled window.
    """
    return {
        "minutes": Gauge(
            "runcost_minutes",
            "Runner minutes used in the sampled window",
            ["repository", "os"],
            registry=registry,
        ),
        "actual_cost_usd": Gauge(
            "runcost_actual_cost_usd",
            "Estimated cost in USD of the sampled window",
            ["repository"],
            registry=registry,
        ),
        "projected_cost_usd": Gauge(
            "runcost_projected_cost_usd",
            "Estimated cost in USD extrapolated to a longer horizon",
            ["repository", "horizon"],
            registry=registry,
        ),
        "runs": Gauge(
            "runcost_runs",
            "Workflow runs in the sampled window",
            ["repository", "state"],
            registry=registry,
        ),
        "window_days": Gauge(
            "runcost_window_days",
            "Length in days of the sampled window",
            ["repository"],
            registry=registry,
        ),
    }


class MetricsUpdater:
    """
    applies AggregateResult data to Prometheus gauges and tracks
    the health of calculation passes.
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self._estimate_metrics: "dict[str, Gauge]" = create_estimate_metrics(registry)
        self._calculation_duration: "Histogram" = Histogram(
            "runcost_calculation_duration_seconds",
            "Duration of repository calculation passes",
            ["repository"],
            registry=registry,
        )
        self._calculation_errors: "Counter" = Counter(
            "runcost_calculation_errors_total",
            "Total number of failed calculation passes by repository",
            ["repository"],
            registry=registry,
        )
        self._last_calculation_success: "Gauge" = Gauge(
            "runcost_last_calculation_success_timestamp_seconds",
            "Unix timestamp of last successful calculation per repository",
            ["repository"],
            registry=registry,
        )

    def update_result(self, result: "AggregateResult") -> "None":
        """
        sets the estimate gauges of the result's repository,
        replacing the previous estimate.
        """
        metrics = self._estimate_metrics
        repository = result.repository

        for os_class in OSClass:
            metrics["minutes"].labels(repository=repository, os=os_class.value).set(
                result.minutes_for(os_class)
            )
        metrics["actual_cost_usd"].labels(repository=repository).set(result.actual_cost)
        metrics["projected_cost_usd"].labels(
            repository=repository, horizon="monthly"
        ).set(result.monthly_cost)
        metrics["projected_cost_usd"].labels(
            repository=repository, horizon="yearly"
        ).set(result.yearly_cost)
        metrics["runs"].labels(repository=repository, state="total").set(
            result.total_runs
        )
        metrics["runs"].labels(repository=repository, state="analyzed").set(
            result.analyzed_runs
        )
        metrics["window_days"].labels(repository=repository).set(result.days_analyzed)

    def observe_calculation_duration(
        self, repository: "str", duration_seconds: "float"
    ) -> "None":
        self._calculation_duration.labels(repository=repository).observe(
            duration_seconds
        )

    def inc_calculation_error(self, repository: "str") -> "None":
        self._calculation_errors.labels(repository=repository).inc()

    def set_last_calculation_success(
        self, repository: "str", timestamp: "float"
    ) -> "None":
        self._last_calculation_success.labels(repository=repository).set(timestamp)
