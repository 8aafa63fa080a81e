"""Tests for reconciling poll results into the registry."""
from unittest.mock import patch

from chaos_exporter.services.chaos.models import AggregateCounts

from tests.conftest import make_metrics


def exposed_values(registry) -> dict:
    """Every sample currently exposed, keyed by metric name."""
    return {
        sample.name: sample.value
        for family in registry.registry.collect()
        for sample in family.samples
    }


class TestReconcilingCollector:
    """Test cases for ReconcilingCollector."""

    def test_first_poll(self, collector, registry, first_poll):
        """Test reconciling the first poll into an empty registry."""
        report = collector.reconcile(first_poll)

        assert sorted(report.new_series) == ["container-kill", "pod-failure"]
        assert report.updated_series == []
        assert registry.get_aggregates() == AggregateCounts(total=3, passed=1, failed=1)
        assert registry.get_value("pod-failure") == 3.0
        assert registry.get_value("container-kill") == 1.0

    def test_first_poll_exposition(self, collector, registry, first_poll):
        """Test the exposed samples after the first poll."""
        collector.reconcile(first_poll)
        values = exposed_values(registry)

        assert values["c_engine_experiment_count"] == 3.0
        assert values["c_engine_passed_experiments"] == 1.0
        assert values["c_engine_failed_experiments"] == 1.0
        assert values["c_exp_pod_failure"] == 3.0
        assert values["c_exp_container_kill"] == 1.0

    def test_second_poll_adds_only_new_experiment(
        self, collector, registry, first_poll, second_poll
    ):
        """Test that a later poll registers only unseen experiments."""
        collector.reconcile(first_poll)

        with patch.object(
            registry.registry, "register", wraps=registry.registry.register
        ) as register:
            report = collector.reconcile(second_poll)

        assert register.call_count == 1
        assert report.new_series == ["network-delay"]
        assert sorted(report.updated_series) == ["container-kill", "pod-failure"]
        assert registry.series_names() == ["container_kill", "network_delay", "pod_failure"]
        assert registry.get_value("network-delay") == 1.0
        assert registry.get_aggregates() == AggregateCounts(total=4, passed=2, failed=1)

    def test_unchanged_poll_keeps_series_set(self, collector, registry, first_poll):
        """Test that a repeated poll adds no series."""
        collector.reconcile(first_poll)
        before = registry.series_names()

        report = collector.reconcile(first_poll)

        assert registry.series_names() == before
        assert report.new_series == []
        assert report.total == 2

    def test_identical_polls_are_idempotent(self, collector, registry, second_poll):
        """Test that reconciling the same poll twice changes nothing."""
        collector.reconcile(second_poll)
        before = exposed_values(registry)

        collector.reconcile(second_poll)

        assert exposed_values(registry) == before

    def test_state_change_updates_value(self, collector, registry):
        """Test that a changed verdict updates the series value."""
        collector.reconcile(make_metrics(1, 0, 0, {"pod-failure": 1}))
        collector.reconcile(make_metrics(1, 1, 0, {"pod-failure": 3}))

        assert registry.get_value("pod-failure") == 3.0
        assert registry.get_aggregates().passed == 1.0

    def test_experiment_missing_from_later_poll_keeps_series(self, collector, registry, second_poll):
        """Test that an experiment absent from a later poll stays exposed."""
        collector.reconcile(second_poll)
        collector.reconcile(make_metrics(1, 1, 0, {"pod-failure": 3}))

        assert "network-delay" in registry
        assert registry.get_value("network-delay") == 1.0

    def test_empty_verdict_map_still_sets_counts(self, collector, registry):
        """Test that counts are set even without verdicts."""
        report = collector.reconcile(make_metrics(2, 0, 0))

        assert report.total == 0
        assert registry.get_aggregates() == AggregateCounts(total=2)
        assert len(registry) == 0
