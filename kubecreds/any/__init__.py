"""
Any - Context-agnostic components for kubecreds.

This module contains code that works both inside a cluster and on a dev machine.
It defines protocols, exceptions, logging, context detection and the DI container.
"""

from kubecreds.any.container import (
    KubeCredsIoCContainer,
    container,
    get_command_runner,
    get_credential_context,
    get_document_parser,
    get_path_query,
)
from kubecreds.any.context import is_in_cluster
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
from kubecreds.any.logger import get_logger
from kubecreds.any.protocols import CommandResult, CommandRunner, DocumentParser, PathQuery
from kubecreds.any.utils import run_command

__all__ = [
    # Context detection
    "is_in_cluster",
    # Exceptions
    "KubeCredsError",
    "KubeCredsConfigFileNotFoundError",
    "KubeCredsParseError",
    "KubeCredsNotFoundError",
    "KubeCredsCredentialDecodeError",
    "KubeCredsAuthCommandError",
    "KubeCredsConfigurationError",
    "KubeCredsEnvironmentError",
    # Protocols
    "CommandResult",
    "CommandRunner",
    "DocumentParser",
    "PathQuery",
    # Utils
    "get_logger",
    "run_command",
    # DI Container
    "KubeCredsIoCContainer",
    "container",
    "get_command_runner",
    "get_credential_context",
    "get_document_parser",
    "get_path_query",
]
