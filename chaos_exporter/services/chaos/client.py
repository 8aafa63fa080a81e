"""Metrics sources for fetching ChaosEngine results."""
import structlog
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from chaos_exporter.exceptions import SourceError
from chaos_exporter.services.chaos.models import (
    ChaosMetrics,
    ExperimentVerdict,
    VerdictState,
)

logger = structlog.get_logger()

CHAOS_GROUP = "litmuschaos.io"
CHAOS_VERSION = "v1alpha1"
CHAOS_ENGINE_PLURAL = "chaosengines"

# Status codes retrying cannot fix
PERMANENT_STATUS_CODES = (401, 403)


class BaseMetricsSource(ABC):
    """Abstract base class for chaos metrics sources."""

    @abstractmethod
    def fetch(self, engine_name: str, namespace: str) -> ChaosMetrics:
        """
        Get aggregate counts and per-experiment verdicts for an engine.

        Raises:
            SourceError: if the results cannot be retrieved
        """
        pass


class KubernetesChaosSource(BaseMetricsSource):
    """Reads ChaosEngine custom resources through the Kubernetes API."""

    def __init__(
        self,
        api_client: Optional[k8s_client.ApiClient] = None,
        request_timeout: Optional[float] = None
    ):
        self.custom_api = k8s_client.CustomObjectsApi(api_client)
        self.request_timeout = request_timeout

    def fetch(self, engine_name: str, namespace: str) -> ChaosMetrics:
        """Fetch the ChaosEngine and summarize its experiment statuses."""
        try:
            engine = self.custom_api.get_namespaced_custom_object(
                group=CHAOS_GROUP,
                version=CHAOS_VERSION,
                namespace=namespace,
                plural=CHAOS_ENGINE_PLURAL,
                name=engine_name,
                _request_timeout=self.request_timeout,
            )
        except ApiException as e:
            raise SourceError(
                f"Unable to get chaosengine {namespace}/{engine_name}: "
                f"{e.status} {e.reason}",
                permanent=e.status in PERMANENT_STATUS_CODES,
                status=e.status,
            ) from e
        except HTTPError as e:
            raise SourceError(
                f"Unable to reach the Kubernetes API: {e}"
            ) from e

        return self.parse_engine(engine)

    @staticmethod
    def parse_engine(engine: Dict[str, Any]) -> ChaosMetrics:
        """
        Convert a ChaosEngine object into a poll result.

        The total is the number of experiments listed under ``spec.experiments``, which
        can exceed the number that have reported a status so far.
        """
        if not isinstance(engine, dict):
            raise SourceError(f"Malformed chaosengine payload: {type(engine).__name__}")

        spec = engine.get("spec") or {}
        status = engine.get("status") or {}
        declared = spec.get("experiments") or []
        reported = status.get("experiments") or []

        if not isinstance(declared, list) or not isinstance(reported, list):
            raise SourceError("Malformed chaosengine payload: experiments is not a list")

        verdicts: List[ExperimentVerdict] = []
        for entry in reported:
            if not isinstance(entry, dict):
                logger.debug("Skipping non-dict experiment status", entry=entry)
                continue
            verdicts.append(ExperimentVerdict(
                name=str(entry.get("name") or ""),
                state=VerdictState.from_status(
                    entry.get("verdict"), entry.get("status")
                ),
            ))

        return ChaosMetrics.from_verdicts(verdicts, total=len(declared))


class StaticChaosSource(BaseMetricsSource):
    """Source returning a preset result, for local runs and tests."""

    def __init__(self, result: Optional[ChaosMetrics] = None):
        self.result = result or ChaosMetrics()
        self.calls = 0

    def fetch(self, engine_name: str, namespace: str) -> ChaosMetrics:
        self.calls += 1
        return self.result
