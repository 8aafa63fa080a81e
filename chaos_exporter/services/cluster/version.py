"""
Version discovery for the label set.

Looks up the Kubernetes server version and the OpenEBS control plane
version once at startup. Failures fall back to a placeholder value so the
exporter can still run against clusters without OpenEBS.
"""

import structlog
from typing import Optional

from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from chaos_exporter.config import Settings
from chaos_exporter.exceptions import SourceError
from chaos_exporter.services.chaos.models import LabelSet

logger = structlog.get_logger()

OPENEBS_API_SERVER_SELECTOR = "name=maya-apiserver"
OPENEBS_VERSION_LABEL = "openebs.io/version"


def get_kubernetes_version(api_client: Optional[k8s_client.ApiClient] = None) -> str:
    """Return the API server git version, e.g. ``v1.28.3``."""
    try:
        info = k8s_client.VersionApi(api_client).get_code()
    except (ApiException, HTTPError) as e:
        raise SourceError(f"Unable to get Kubernetes version: {e}") from e
    return info.git_version


def get_openebs_version(
    api_client: Optional[k8s_client.ApiClient] = None,
    namespace: str = "openebs"
) -> str:
    """Return the version label of the OpenEBS API server pod."""
    try:
        pods = k8s_client.CoreV1Api(api_client).list_namespaced_pod(
            namespace,
            label_selector=OPENEBS_API_SERVER_SELECTOR,
        )
    except (ApiException, HTTPError) as e:
        raise SourceError(f"Unable to list OpenEBS pods: {e}") from e

    for pod in pods.items:
        version = (pod.metadata.labels or {}).get(OPENEBS_VERSION_LABEL)
        if version:
            return version

    raise SourceError(
        f"No pod labelled {OPENEBS_VERSION_LABEL} in namespace {namespace}"
    )


def resolve_label_set(
    settings: Settings,
    api_client: Optional[k8s_client.ApiClient] = None
) -> LabelSet:
    """Build the constant label set attached to every series."""
    try:
        kubernetes_version = get_kubernetes_version(api_client)
    except SourceError as e:
        logger.info("Unable to get Kubernetes version", error=str(e))
        kubernetes_version = settings.VERSION_FALLBACK

    try:
        openebs_version = get_openebs_version(api_client, settings.OPENEBS_NAMESPACE)
    except SourceError as e:
        logger.info("Unable to get OpenEBS version", error=str(e))
        openebs_version = settings.VERSION_FALLBACK

    return LabelSet(
        app_uid=settings.APP_UUID,
        engine_name=settings.CHAOSENGINE,
        kubernetes_version=kubernetes_version,
        openebs_version=openebs_version,
    )
