from prometheus_client import CollectorRegistry

from runcost.metrics import MetricsUpdater
from runcost.models import AggregateResult


def _result(repository: "str" = "octo/repo") -> "AggregateResult":
    return AggregateResult(
        repository=repository,
        days_analyzed=7,
        total_runs=10,
        analyzed_runs=7,
        linux_minutes=100.0,
        windows_minutes=20.0,
        macos_minutes=5.0,
        actual_cost=1.5,
        monthly_cost=1.5 * 30 / 7,
        yearly_cost=1.5 * 365 / 7,
    )


class TestMetricsUpdater:
    def test_estimate_metrics_are_created(
        self,
        registry: "CollectorRegistry",
    ) -> "None":
        MetricsUpdater(registry=registry)
        metric_names = [m.name for m in registry.collect()]
        assert "runcost_minutes" in metric_names
        assert "runcost_actual_cost_usd" in metric_names
        assert "runcost_projected_cost_usd" in metric_names
        assert "runcost_runs" in metric_names
        assert "runcost_window_days" in metric_names

    def test_update_result_sets_gauges(
        self,
        registry: "CollectorRegistry",
    ) -> "None":
        updater = MetricsUpdater(registry=registry)
        result = _result()
        updater.update_result(result)

        linux = registry.get_sample_value(
            "runcost_minutes", {"repository": "octo/repo", "os": "linux"}
        )
        assert linux == 100.0

        macos = registry.get_sample_value(
            "runcost_minutes", {"repository": "octo/repo", "os": "macos"}
        )
        assert macos == 5.0

        actual = registry.get_sample_value(
            "runcost_actual_cost_usd", {"repository": "octo/repo"}
        )
        assert actual == 1.5

        monthly = registry.get_sample_value(
            "runcost_projected_cost_usd",
            {"repository": "octo/repo", "horizon": "monthly"},
        )
        assert monthly == result.monthly_cost

        analyzed = registry.get_sample_value(
            "runcost_runs", {"repository": "octo/repo", "state": "analyzed"}
        )
        total = registry.get_sample_value(
            "runcost_runs", {"repository": "octo/repo", "state": "total"}
        )
        assert analyzed == 7.0
        assert total == 10.0

    def test_update_result_replaces_previous_estimate(
        self,
        registry: "CollectorRegistry",
    ) -> "None":
        updater = MetricsUpdater(registry=registry)
        updater.update_result(_result())
        updater.update_result(_result())

        # gauges are set, not incremented
        actual = registry.get_sample_value(
            "runcost_actual_cost_usd", {"repository": "octo/repo"}
        )
        assert actual == 1.5

    def test_self_metrics_are_created(
        self,
        registry: "CollectorRegistry",
    ) -> "None":
        MetricsUpdater(registry=registry)
        metric_names = [m.name for m in registry.collect()]
        assert "runcost_calculation_duration_seconds" in metric_names
        # prometheus_client strips _total suffix from Counter family names
        assert "runcost_calculation_errors" in metric_names
        assert "runcost_last_calculation_success_timestamp_seconds" in metric_names

    def test_self_metrics_update(
        self,
        registry: "CollectorRegistry",
    ) -> "None":
        updater = MetricsUpdater(registry=registry)

        updater.observe_calculation_duration("octo/repo", 0.5)
        updater.inc_calculation_error("octo/repo")
        updater.set_last_calculation_success("octo/repo", 1000.0)

        error_val = registry.get_sample_value(
            "runcost_calculation_errors_total",
            {"repository": "octo/repo"},
        )
        assert error_val == 1.0

        success_val = registry.get_sample_value(
            "runcost_last_calculation_success_timestamp_seconds",
            {"repository": "octo/repo"},
        )
        assert success_val == 1000.0

        count_val = registry.get_sample_value(
            "runcost_calculation_duration_seconds_count",
            {"repository": "octo/repo"},
        )
        assert count_val == 1.0
