"""
Credential materialization.

Embedded ``*-data`` fields in a kubeconfig hold base64 PEM blobs. HTTP/TLS
clients want file paths, so each blob is decoded and written to a temp file
owned by the calling CredentialContext. Plain path fields are passed through
untouched and are never deleted.
"""

import base64
import binascii
from pathlib import Path
from typing import Any, NamedTuple

from kubecreds.any.exceptions import KubeCredsConfigurationError, KubeCredsCredentialDecodeError
from kubecreds.any.logger import get_logger
from kubecreds.credentials.tempfiles import TempFileOwner

LOGGER = get_logger("kubecreds.credentials.materializer")


class CredentialField(NamedTuple):
    """An embedded-data field and its plain-path fallback."""

    data_key: str
    path_key: str


CERTIFICATE_AUTHORITY = CredentialField("certificate-authority-data", "certificate-authority")
CLIENT_CERTIFICATE = CredentialField("client-certificate-data", "client-certificate")
CLIENT_KEY = CredentialField("client-key-data", "client-key")


class MaterializedCredentials(NamedTuple):
    """Paths resolved for one context, plus the subset this core created."""

    certificate_authority_path: Path | None
    client_certificate_path: Path | None
    client_key_path: Path | None
    materialized: frozenset[Path]


def decode_credential_data(value: Any, field: str) -> bytes:
    """
    Strictly decode a base64 credential blob.

    Whitespace (including the line breaks some tools wrap blobs with) is
    ignored; any other character outside the base64 alphabet is an error.

    Raises
    ------
        KubeCredsCredentialDecodeError: If ``value`` is not valid base64

    """
    if not isinstance(value, str | bytes):
        raise KubeCredsCredentialDecodeError(
            f"Invalid {field}: expected a base64 string, got {type(value).__name__}", field=field
        )

    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")

    compact = "".join(value.split())
    compact += "=" * (-len(compact) % 4)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KubeCredsCredentialDecodeError(f"Invalid base64 in {field}: {e}", field=field) from e


class CredentialMaterializer:
    """
    Turns cluster/user credential fields into file paths.

    Example:
    -------
        ```python
        owner = TempFileOwner()
        materializer = CredentialMaterializer(owner)
        creds = materializer.materialize(cluster, user)
        creds.certificate_authority_path  # /tmp/kubecreds-abc123
        ```

    """

    def __init__(self, owner: TempFileOwner, base_dir: Path | None = None):
        """
        Initialize the materializer.

        Args:
        ----
            owner: Temp file owner that will hold every file written
            base_dir: Directory relative plain paths are resolved against
                      (the kubeconfig's directory); None keeps them verbatim

        """
        self._owner = owner
        self._base_dir = base_dir

    def _plain_path(self, value: Any, field: str) -> Path:
        if not isinstance(value, str):
            raise KubeCredsConfigurationError(f"Invalid {field}: expected a file path, got {type(value).__name__}")

        path = Path(value).expanduser()
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path
        return path

    def _resolve(self, body: dict[str, Any], field: CredentialField, written: list[Path]) -> Path | None:
        data = body.get(field.data_key)
        if data:
            path = self._owner.write(decode_credential_data(data, field.data_key))
            written.append(path)
            LOGGER.debug(f"Materialized {field.data_key} to {path}")
            return path

        plain = body.get(field.path_key)
        if plain:
            return self._plain_path(plain, field.path_key)

        return None

    def materialize(self, cluster: dict[str, Any], user: dict[str, Any]) -> MaterializedCredentials:
        """
        Resolve CA, client certificate and client key paths.

        Either every embedded blob is written, or none is: if any field fails to
        decode, files already written by this call are deleted before the error
        propagates.

        Args:
        ----
            cluster: Raw cluster body
            user: Raw user body

        Returns:
        -------
            MaterializedCredentials with the resolved paths

        Raises:
        ------
            KubeCredsCredentialDecodeError: If an embedded blob is not valid base64
            KubeCredsConfigurationError: If a plain path field is not a string

        """
        written: list[Path] = []
        try:
            ca_path = self._resolve(cluster, CERTIFICATE_AUTHORITY, written)
            cert_path = self._resolve(user, CLIENT_CERTIFICATE, written)
            key_path = self._resolve(user, CLIENT_KEY, written)
        except BaseException:
            removed = self._owner.release_many(written)
            if written:
                LOGGER.warning(f"Credential materialization failed, removed {removed} partially written temp files")
            raise

        return MaterializedCredentials(
            certificate_authority_path=ca_path,
            client_certificate_path=cert_path,
            client_key_path=key_path,
            materialized=frozenset(written),
        )
