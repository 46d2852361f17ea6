"""
Kubeconfig discovery and loading.

This module provides functions to locate and parse kubeconfig documents:
- Path discovery (explicit path → $KUBECONFIG → ~/.kube/config)
- YAML parsing via an injectable DocumentParser
- Validation via Pydantic models (ConfigDocument)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from kubecreds.any.exceptions import KubeCredsConfigFileNotFoundError, KubeCredsParseError
from kubecreds.any.logger import get_logger
from kubecreds.any.protocols import DocumentParser
from kubecreds.config.schemas import ConfigDocument

LOGGER = get_logger("kubecreds.config.loaders")

KUBECONFIG_ENV = "KUBECONFIG"


class YamlDocumentParser:
    """
    Parses kubeconfig content with PyYAML's safe loader.

    Implements the DocumentParser protocol.
    """

    def parse(self, data: bytes) -> Any:
        """Parse YAML bytes into plain Python data."""
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise KubeCredsParseError(f"Failed to parse kubeconfig YAML: {e}") from e

    def __repr__(self) -> str:
        """String representation."""
        return "YamlDocumentParser()"


def _default_config_path() -> Path:
    return Path.home() / ".kube" / "config"


def _path_from_env() -> Path | None:
    """
    Pick a path out of $KUBECONFIG.

    $KUBECONFIG may hold several os.pathsep-separated entries. The first one
    that exists wins; if none exists the first entry is returned so the
    caller's error names it.
    """
    raw = os.environ.get(KUBECONFIG_ENV, "")
    entries = [Path(entry).expanduser() for entry in raw.split(os.pathsep) if entry.strip()]
    if not entries:
        return None

    for entry in entries:
        if entry.exists():
            return entry
    return entries[0]


def resolve_config_path(path: str | Path | None = None) -> Path:
    """
    Resolve which kubeconfig file to load.

    Args:
    ----
        path: Explicit path. Falls back to $KUBECONFIG, then ~/.kube/config

    Returns:
    -------
        Path to an existing kubeconfig file

    Raises:
    ------
        KubeCredsConfigFileNotFoundError: If the resolved path does not exist

    """
    if path:
        resolved = Path(path).expanduser()
        source = "argument"
    else:
        env_path = _path_from_env()
        if env_path is not None:
            resolved = env_path
            source = f"${KUBECONFIG_ENV}"
        else:
            resolved = _default_config_path()
            source = "default"

    if not resolved.is_file():
        raise KubeCredsConfigFileNotFoundError(f"Config file does not exist: {resolved}")

    LOGGER.debug(f"Using kubeconfig from {source}: {resolved}")
    return resolved


def parse_document(data: Any) -> ConfigDocument:
    """
    Validate already-parsed kubeconfig data.

    Args:
    ----
        data: Parsed document (mapping), or None for an empty document

    Returns:
    -------
        Validated ConfigDocument

    Raises:
    ------
        KubeCredsParseError: If the data does not have the kubeconfig shape

    """
    if data is None:
        LOGGER.warning("Kubeconfig document is empty")
        return ConfigDocument()

    if not isinstance(data, dict):
        raise KubeCredsParseError(f"Kubeconfig must be a mapping at the top level, got {type(data).__name__}")

    try:
        return ConfigDocument.model_validate(data)
    except ValidationError as e:
        raise KubeCredsParseError(f"Invalid kubeconfig document: {e}") from e


def load_document(path: Path, parser: DocumentParser | None = None) -> ConfigDocument:
    """
    Read and validate a kubeconfig file.

    Args:
    ----
        path: Path to the kubeconfig file
        parser: Document parser (defaults to YamlDocumentParser)

    Returns:
    -------
        Validated ConfigDocument

    Raises:
    ------
        KubeCredsConfigFileNotFoundError: If the file cannot be read
        KubeCredsParseError: If the content is not a valid kubeconfig

    """
    parser = parser or YamlDocumentParser()

    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise KubeCredsConfigFileNotFoundError(f"Config file does not exist: {path}") from e
    except OSError as e:
        raise KubeCredsParseError(f"Failed to read {path}: {e}") from e

    try:
        document = parse_document(parser.parse(raw))
    except KubeCredsParseError as e:
        raise KubeCredsParseError(f"Failed to parse {path}: {e}") from e

    LOGGER.info(
        f"Loaded kubeconfig {path}: {len(document.contexts)} contexts, "
        f"{len(document.clusters)} clusters, {len(document.users)} users"
    )
    return document
