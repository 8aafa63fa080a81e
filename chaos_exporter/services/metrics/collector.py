"""Reconciles poll results into the experiment registry."""
import structlog
from dataclasses import dataclass, field
from typing import List

from chaos_exporter.services.chaos.models import ChaosMetrics
from chaos_exporter.services.metrics.registry import ExperimentRegistry, UpsertResult

logger = structlog.get_logger()


@dataclass
class ReconcileReport:
    """Outcome of reconciling one poll."""
    new_series: List[str] = field(default_factory=list)
    updated_series: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.new_series) + len(self.updated_series)


class ReconcilingCollector:
    """
    Brings the registry in line with the latest poll.

    Each experiment in the verdict map is upserted, so a series is
    registered the first time its experiment appears and only updated
    afterwards. The aggregate gauges are refreshed on every poll.
    """

    def __init__(self, registry: ExperimentRegistry):
        self.registry = registry

    def reconcile(self, metrics: ChaosMetrics) -> ReconcileReport:
        report = ReconcileReport()

        for name, state in metrics.verdicts.items():
            result = self.registry.upsert(name, state.value)
            if result is UpsertResult.NEW:
                report.new_series.append(name)
            else:
                report.updated_series.append(name)
            self.registry.set_aggregates(metrics.counts)

        # An engine with no reported experiments still has counts to expose
        if not metrics.verdicts:
            self.registry.set_aggregates(metrics.counts)

        if report.new_series:
            logger.info(
                "New experiment series registered",
                experiments=report.new_series,
                known_series=len(self.registry)
            )
        return report
