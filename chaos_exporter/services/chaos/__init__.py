"""
ChaosEngine result retrieval.

This module provides:
- Verdict, count and label models for one poll
- Experiment name sanitization for metric names
- Metrics sources (Kubernetes custom resources, static results)
"""

from chaos_exporter.services.chaos.models import (
    VerdictState,
    ExperimentVerdict,
    AggregateCounts,
    LabelSet,
    ChaosMetrics,
    sanitize_metric_name,
)
from chaos_exporter.services.chaos.client import (
    BaseMetricsSource,
    KubernetesChaosSource,
    StaticChaosSource,
)

__all__ = [
    # Models
    "VerdictState",
    "ExperimentVerdict",
    "AggregateCounts",
    "LabelSet",
    "ChaosMetrics",
    "sanitize_metric_name",
    # Sources
    "BaseMetricsSource",
    "KubernetesChaosSource",
    "StaticChaosSource",
]
