"""Pytest configuration and fixtures."""
import threading
import pytest
from typing import List, Optional

from chaos_exporter.config import Settings
from chaos_exporter.exceptions import SourceError
from chaos_exporter.services.chaos.client import BaseMetricsSource, StaticChaosSource
from chaos_exporter.services.chaos.models import (
    AggregateCounts,
    ChaosMetrics,
    LabelSet,
    VerdictState,
)
from chaos_exporter.services.metrics.collector import ReconcilingCollector
from chaos_exporter.services.metrics.registry import ExperimentRegistry
from chaos_exporter.services.poller.retry import RetryConfig


class ScriptedSource(BaseMetricsSource):
    """Source replaying a list of results; SourceError entries are raised."""

    def __init__(self, script: List[object]):
        self.script = list(script)
        self.calls = 0

    def fetch(self, engine_name: str, namespace: str) -> ChaosMetrics:
        self.calls += 1
        # The last entry repeats once the script is exhausted
        step = self.script[min(self.calls, len(self.script)) - 1]
        if isinstance(step, SourceError):
            raise step
        return step


class HangingSource(BaseMetricsSource):
    """Source whose fetch blocks until released, like a stuck API call."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def fetch(self, engine_name: str, namespace: str) -> ChaosMetrics:
        self.calls += 1
        self.release.wait(timeout=5.0)
        return ChaosMetrics()


def make_metrics(
    total: float,
    passed: float,
    failed: float,
    verdicts: Optional[dict] = None
) -> ChaosMetrics:
    return ChaosMetrics(
        counts=AggregateCounts(total=total, passed=passed, failed=failed),
        verdicts={name: VerdictState(code) for name, code in (verdicts or {}).items()},
    )


@pytest.fixture
def labels() -> LabelSet:
    return LabelSet(
        app_uid="3f2a-uid",
        engine_name="engine-nginx",
        kubernetes_version="v1.28.3",
        openebs_version="3.9.0",
    )


@pytest.fixture
def registry(labels) -> ExperimentRegistry:
    return ExperimentRegistry(labels, namespace="c")


@pytest.fixture
def collector(registry) -> ReconcilingCollector:
    return ReconcilingCollector(registry)


@pytest.fixture
def first_poll() -> ChaosMetrics:
    return make_metrics(3, 1, 1, {"pod-failure": 3, "container-kill": 1})


@pytest.fixture
def second_poll() -> ChaosMetrics:
    return make_metrics(
        4, 2, 1, {"pod-failure": 3, "container-kill": 1, "network-delay": 1}
    )


@pytest.fixture
def static_source(first_poll) -> StaticChaosSource:
    return StaticChaosSource(first_poll)


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry policy with millisecond waits and no jitter."""
    return RetryConfig(
        min_wait_seconds=0.001,
        max_wait_seconds=0.005,
        jitter_seconds=0.0,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        APP_UUID="3f2a-uid",
        CHAOSENGINE="engine-nginx",
        APP_NAMESPACE="litmus",
        POLL_INTERVAL_SECONDS=0.01,
        RETRY_MIN_WAIT_SECONDS=0.001,
        RETRY_MAX_WAIT_SECONDS=0.005,
        RETRY_JITTER_SECONDS=0.0,
    )
