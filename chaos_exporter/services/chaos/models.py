"""
Chaos Result Models.

Shapes of one poll of a ChaosEngine: aggregate counts, per-experiment
verdicts and the constant label set every exported series carries.
"""

import enum
import re
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class VerdictState(int, enum.Enum):
    """
    State code of one chaos experiment.

    The numeric value is an opaque code, not a progress indicator.
    """
    NOT_EXECUTED = 0
    RUNNING = 1
    FAIL = 2
    PASS = 3

    @classmethod
    def from_status(
        cls,
        verdict: Optional[str],
        status: Optional[str] = None
    ) -> "VerdictState":
        """Map the verdict/status strings of a ChaosEngine status entry."""
        for value in (verdict, status):
            code = _STATUS_CODES.get((value or "").strip().lower())
            if code is not None and code != cls.NOT_EXECUTED:
                return code
        return cls.NOT_EXECUTED


_STATUS_CODES: Dict[str, VerdictState] = {
    "pass": VerdictState.PASS,
    "passed": VerdictState.PASS,
    "fail": VerdictState.FAIL,
    "failed": VerdictState.FAIL,
    "running": VerdictState.RUNNING,
    "waiting": VerdictState.NOT_EXECUTED,
    "not-executed": VerdictState.NOT_EXECUTED,
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")


def sanitize_metric_name(name: str) -> str:
    """
    Turn an experiment name into a metric name component.

    Every run of non-alphanumeric characters collapses to a single
    underscore. Names are never rejected; an empty result becomes
    ``unnamed``.
    """
    sanitized = _UNSAFE_CHARS.sub("_", name or "")
    return sanitized or "unnamed"


class ExperimentVerdict(BaseModel):
    """One chaos experiment and its current state."""
    name: str = Field(description="Experiment name as reported by the engine")
    state: VerdictState = Field(default=VerdictState.NOT_EXECUTED)

    @property
    def metric_name(self) -> str:
        return sanitize_metric_name(self.name)


class AggregateCounts(BaseModel):
    """Experiment totals for one poll."""
    total: float = Field(default=0.0, ge=0)
    passed: float = Field(default=0.0, ge=0)
    failed: float = Field(default=0.0, ge=0)


class LabelSet(BaseModel):
    """
    Labels attached to every exported series.

    Resolved once at startup and constant for the life of the process.
    """
    app_uid: str
    engine_name: str
    kubernetes_version: str = ""
    openebs_version: str = ""

    model_config = {"frozen": True}

    @classmethod
    def label_names(cls) -> List[str]:
        return ["app_uid", "engine_name", "kubernetes_version", "openebs_version"]

    def values(self) -> List[str]:
        """Label values in ``label_names()`` order."""
        return [
            self.app_uid,
            self.engine_name,
            self.kubernetes_version,
            self.openebs_version,
        ]


class ChaosMetrics(BaseModel):
    """Result of one fetch from a metrics source."""
    counts: AggregateCounts = Field(default_factory=AggregateCounts)
    verdicts: Dict[str, VerdictState] = Field(default_factory=dict)

    @classmethod
    def from_verdicts(
        cls,
        verdicts: List[ExperimentVerdict],
        total: Optional[float] = None
    ) -> "ChaosMetrics":
        """
        Build a poll result from a verdict list.

        A name reported more than once keeps its last state and is counted
        once. ``total`` defaults to the number of distinct experiments;
        passed and failed are always counted from the verdict map.
        """
        by_name = {v.name: v.state for v in verdicts}
        passed = sum(1 for state in by_name.values() if state == VerdictState.PASS)
        failed = sum(1 for state in by_name.values() if state == VerdictState.FAIL)
        return cls(
            counts=AggregateCounts(
                total=float(len(by_name) if total is None else total),
                passed=float(passed),
                failed=float(failed),
            ),
            verdicts=by_name,
        )
