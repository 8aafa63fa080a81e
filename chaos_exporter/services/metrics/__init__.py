"""Prometheus series registry and the collector that reconciles into it."""

from chaos_exporter.services.metrics.registry import ExperimentRegistry, UpsertResult
from chaos_exporter.services.metrics.collector import ReconcilingCollector, ReconcileReport

__all__ = [
    "ExperimentRegistry",
    "UpsertResult",
    "ReconcilingCollector",
    "ReconcileReport",
]
