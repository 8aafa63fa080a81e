"""Wiring of the registry, collector, source and poll loop."""
import structlog
from dataclasses import dataclass
from typing import Optional

from chaos_exporter.config import Settings
from chaos_exporter.exceptions import ConfigurationError
from chaos_exporter.services.chaos.client import BaseMetricsSource, KubernetesChaosSource
from chaos_exporter.services.chaos.models import LabelSet
from chaos_exporter.services.cluster.kube import load_api_client
from chaos_exporter.services.cluster.version import resolve_label_set
from chaos_exporter.services.metrics.collector import ReconcilingCollector
from chaos_exporter.services.metrics.registry import ExperimentRegistry
from chaos_exporter.services.poller.loop import PollLoop
from chaos_exporter.services.poller.retry import RetryConfig

logger = structlog.get_logger()


@dataclass
class Exporter:
    """Components shared by the poll loop and the HTTP handlers."""
    settings: Settings
    labels: LabelSet
    registry: ExperimentRegistry
    collector: ReconcilingCollector
    poll_loop: PollLoop


def build_exporter(
    settings: Settings,
    source: Optional[BaseMetricsSource] = None,
    labels: Optional[LabelSet] = None
) -> Exporter:
    """
    Assemble an exporter from settings.

    Without an injected source or label set, a Kubernetes API client is
    loaded and used for both.

    Raises:
        ConfigurationError: if APP_UUID or CHAOSENGINE is unset, or the
            Kubernetes config cannot be loaded
    """
    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(
            f"Please specify correct {' & '.join(missing)} environment variables"
        )

    if source is None or labels is None:
        api_client = load_api_client(settings.KUBECONFIG)
        if source is None:
            source = KubernetesChaosSource(
                api_client, request_timeout=settings.FETCH_TIMEOUT_SECONDS
            )
        if labels is None:
            labels = resolve_label_set(settings, api_client)

    registry = ExperimentRegistry(labels, namespace=settings.METRICS_NAMESPACE)
    collector = ReconcilingCollector(registry)
    poll_loop = PollLoop(
        source=source,
        collector=collector,
        engine_name=settings.CHAOSENGINE,
        namespace=settings.APP_NAMESPACE,
        interval_seconds=settings.POLL_INTERVAL_SECONDS,
        retry=RetryConfig(
            enabled=settings.RETRY_ENABLED,
            min_wait_seconds=settings.RETRY_MIN_WAIT_SECONDS,
            max_wait_seconds=settings.RETRY_MAX_WAIT_SECONDS,
            jitter_seconds=settings.RETRY_JITTER_SECONDS,
            max_consecutive_failures=settings.MAX_CONSECUTIVE_FAILURES,
        ),
        fetch_timeout_seconds=settings.FETCH_TIMEOUT_SECONDS,
    )

    logger.info(
        "Exporter configured",
        engine=labels.engine_name,
        namespace=settings.APP_NAMESPACE,
        kubernetes_version=labels.kubernetes_version,
        openebs_version=labels.openebs_version
    )
    return Exporter(
        settings=settings,
        labels=labels,
        registry=registry,
        collector=collector,
        poll_loop=poll_loop,
    )
