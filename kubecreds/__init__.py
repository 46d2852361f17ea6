"""
KubeCreds - Kubernetes credential resolution from kubeconfig documents.

This library turns a kubeconfig context into everything an HTTP client needs:
- API server URL
- Client certificate/key and CA bundle paths (embedded data is written to temp files)
- Bearer token, static or obtained lazily from an auth-provider command

Temp files are owned by the CredentialContext that created them and are deleted
on context switch, on close() and at interpreter exit.
"""

# ============================================================================
# CORE EXPORTS
# ============================================================================

from kubecreds.any.exceptions import (
    KubeCredsAuthCommandError,
    KubeCredsConfigFileNotFoundError,
    KubeCredsConfigurationError,
    KubeCredsCredentialDecodeError,
    KubeCredsEnvironmentError,
    KubeCredsError,
    KubeCredsNotFoundError,
    KubeCredsParseError,
)
from kubecreds.credential_context import ActiveContext, CredentialContext, load_config
from kubecreds.credentials.tempfiles import shutdown
from kubecreds.types import TokenState

try:
    from kubecreds._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

__all__ = [
    # Exceptions
    "KubeCredsError",
    "KubeCredsConfigFileNotFoundError",
    "KubeCredsParseError",
    "KubeCredsNotFoundError",
    "KubeCredsCredentialDecodeError",
    "KubeCredsAuthCommandError",
    "KubeCredsConfigurationError",
    "KubeCredsEnvironmentError",
    # Credentials
    "ActiveContext",
    "CredentialContext",
    "TokenState",
    "load_config",
    "shutdown",
    # Version
    "__version__",
]
