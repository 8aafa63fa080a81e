"""
Experiment Series Registry.

Owns the Prometheus ``CollectorRegistry`` the exporter serves and the
gauges registered in it:

- three fixed aggregate gauges in the ``engine`` subsystem
- one gauge per distinct experiment in the ``exp`` subsystem, created the
  first time the experiment is seen and reused for the life of the process

Upserts go through a single lock so a scrape never sees a gauge that is
registered but not yet recorded, and a gauge is never registered twice.
"""

import enum
import threading
from typing import Dict, List, Optional

import structlog
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from chaos_exporter.services.chaos.models import (
    AggregateCounts,
    LabelSet,
    sanitize_metric_name,
)

logger = structlog.get_logger()

FIXED_SUBSYSTEM = "engine"
EXPERIMENT_SUBSYSTEM = "exp"


class UpsertResult(str, enum.Enum):
    """Whether an upsert created a series or updated an existing one."""
    NEW = "new"
    EXISTING = "existing"


class ExperimentRegistry:
    """
    Registry of experiment gauges keyed by sanitized experiment name.

    Entries are never removed. Distinct experiment names that sanitize to
    the same key share one gauge; the last value written wins.
    """

    def __init__(
        self,
        labels: LabelSet,
        namespace: str = "c",
        registry: Optional[CollectorRegistry] = None
    ):
        self.labels = labels
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self._series: Dict[str, Gauge] = {}

        label_names = LabelSet.label_names()
        self.experiments_total = Gauge(
            "experiment_count",
            "Total number of experiments executed by the chaos engine",
            label_names,
            namespace=namespace,
            subsystem=FIXED_SUBSYSTEM,
            registry=self.registry,
        )
        self.passed_experiments = Gauge(
            "passed_experiments",
            "Total number of passed experiments",
            label_names,
            namespace=namespace,
            subsystem=FIXED_SUBSYSTEM,
            registry=self.registry,
        )
        self.failed_experiments = Gauge(
            "failed_experiments",
            "Total number of failed experiments",
            label_names,
            namespace=namespace,
            subsystem=FIXED_SUBSYSTEM,
            registry=self.registry,
        )

    def upsert(self, name: str, value: float) -> UpsertResult:
        """
        Set the gauge for an experiment, registering it on first sight.

        Args:
            name: Experiment name as reported by the source (sanitized here)
            value: Verdict state code

        Returns:
            UpsertResult.NEW if the gauge was registered by this call
        """
        key = sanitize_metric_name(name)
        with self._lock:
            gauge = self._series.get(key)
            result = UpsertResult.EXISTING
            if gauge is None:
                gauge = Gauge(
                    key,
                    f"State of chaos experiment {key} "
                    "(0=not-executed, 1=running, 2=fail, 3=pass)",
                    LabelSet.label_names(),
                    namespace=self.namespace,
                    subsystem=EXPERIMENT_SUBSYSTEM,
                    registry=self.registry,
                )
                self._series[key] = gauge
                result = UpsertResult.NEW
                logger.debug("Registered experiment series", series=key, source_name=name)
            gauge.labels(*self.labels.values()).set(float(value))
        return result

    def set_aggregates(self, counts: AggregateCounts) -> None:
        """Set the three fixed aggregate gauges."""
        values = self.labels.values()
        self.experiments_total.labels(*values).set(counts.total)
        self.passed_experiments.labels(*values).set(counts.passed)
        self.failed_experiments.labels(*values).set(counts.failed)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return sanitize_metric_name(name) in self._series

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def series_names(self) -> List[str]:
        """Sanitized names of all registered experiment series, sorted."""
        with self._lock:
            return sorted(self._series)

    def get_value(self, name: str) -> Optional[float]:
        """Current exposed value of an experiment series, if registered."""
        key = sanitize_metric_name(name)
        full_name = f"{self.namespace}_{EXPERIMENT_SUBSYSTEM}_{key}"
        return self.registry.get_sample_value(full_name, self.labels.model_dump())

    def get_aggregates(self) -> AggregateCounts:
        """Read the fixed aggregate gauges back from the registry."""
        labels = self.labels.model_dump()

        def read(metric: str) -> float:
            value = self.registry.get_sample_value(
                f"{self.namespace}_{FIXED_SUBSYSTEM}_{metric}", labels
            )
            return value or 0.0

        return AggregateCounts(
            total=read("experiment_count"),
            passed=read("passed_experiments"),
            failed=read("failed_experiments"),
        )

    def render(self) -> bytes:
        """Render every registered series in the Prometheus text format."""
        return generate_latest(self.registry)
