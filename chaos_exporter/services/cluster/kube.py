"""Kubernetes API client bootstrap."""
import structlog
from typing import Optional

from kubernetes import client as k8s_client, config as k8s_config
from kubernetes.config.config_exception import ConfigException

from chaos_exporter.exceptions import ConfigurationError

logger = structlog.get_logger()


def load_api_client(kubeconfig: Optional[str] = None) -> k8s_client.ApiClient:
    """
    Build an API client from a kubeconfig file, or from the in-cluster
    service account when no path is given.
    """
    try:
        if not kubeconfig:
            logger.info("Using the in-cluster config")
            k8s_config.load_incluster_config()
            return k8s_client.ApiClient()

        logger.info("Using configuration from kubeconfig", kubeconfig=kubeconfig)
        return k8s_config.new_client_from_config(config_file=kubeconfig)
    except ConfigException as e:
        raise ConfigurationError(f"Unable to load Kubernetes config: {e}") from e
