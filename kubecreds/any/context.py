"""
Runtime context detection for kubecreds.

Determines whether code is running inside a Kubernetes cluster or on a local machine,
and holds the well-known service account locations used for in-cluster bootstrap.
"""

from functools import lru_cache
from pathlib import Path

from kubecreds.any.logger import get_logger

LOGGER = get_logger("kubecreds.any.context")

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")
SERVICE_ACCOUNT_TOKEN_PATH = SERVICE_ACCOUNT_DIR / "token"
SERVICE_ACCOUNT_CA_PATH = SERVICE_ACCOUNT_DIR / "ca.crt"
IN_CLUSTER_SERVER = "https://kubernetes.default.svc"
IN_CLUSTER_CONTEXT_NAME = "in-cluster"


@lru_cache(maxsize=1)
def is_in_cluster() -> bool:
    """
    Detect if running inside a Kubernetes cluster.

    Checks for the presence of the Kubernetes service account token file,
    which is mounted into every pod in a Kubernetes cluster.

    Returns:
    -------
        True if running inside K8s cluster, False otherwise

    Note:
    ----
        Result is cached since context doesn't change during runtime.

    """
    in_cluster = SERVICE_ACCOUNT_TOKEN_PATH.exists()

    if in_cluster:
        LOGGER.debug("Detected in-cluster execution (Kubernetes)")
    else:
        LOGGER.debug("Detected local execution (dev machine)")

    return in_cluster
