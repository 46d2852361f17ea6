"""Credential materialization, temp file lifecycle and token resolution."""

from kubecreds.credentials.commands import SubprocessCommandRunner
from kubecreds.credentials.materializer import CredentialMaterializer, MaterializedCredentials, decode_credential_data
from kubecreds.credentials.tempfiles import REGISTRY, TEMP_FILE_PREFIX, TempFileOwner, TempFileRegistry, shutdown
from kubecreds.credentials.token import (
    AuthProviderTokenSource,
    TokenRefresh,
    classify_token_state,
    decide_token_action,
    parse_expiry,
)

__all__ = [
    "AuthProviderTokenSource",
    "CredentialMaterializer",
    "MaterializedCredentials",
    "REGISTRY",
    "SubprocessCommandRunner",
    "TEMP_FILE_PREFIX",
    "TempFileOwner",
    "TempFileRegistry",
    "TokenRefresh",
    "classify_token_state",
    "decide_token_action",
    "decode_credential_data",
    "parse_expiry",
    "shutdown",
]
