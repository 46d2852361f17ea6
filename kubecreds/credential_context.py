"""
CredentialContext: server URL and credentials for one kubeconfig context.

A CredentialContext binds a named context of a kubeconfig document, writes any
embedded certificate/key/CA data to temp files it owns, and hands out a bearer
token. Auth-provider tokens are fetched lazily: activating a context never runs
a command, only get_token() does, on first use or once the token has expired.

Instances are safe to share between threads. Activation and token refresh run
under an instance lock.
"""

import threading
import time
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kubecreds.any.context import (
    IN_CLUSTER_CONTEXT_NAME,
    IN_CLUSTER_SERVER,
    SERVICE_ACCOUNT_CA_PATH,
    SERVICE_ACCOUNT_TOKEN_PATH,
    is_in_cluster,
)
from kubecreds.any.exceptions import KubeCredsEnvironmentError, KubeCredsNotFoundError
from kubecreds.any.logger import get_logger
from kubecreds.any.protocols import CommandRunner, DocumentParser, PathQuery
from kubecreds.config.loaders import load_document, parse_document, resolve_config_path
from kubecreds.config.query import JsonPathQuery
from kubecreds.config.schemas import ConfigDocument, ContextReference
from kubecreds.credentials.commands import SubprocessCommandRunner
from kubecreds.credentials.materializer import CredentialMaterializer
from kubecreds.credentials.tempfiles import TempFileOwner
from kubecreds.credentials.token import (
    AuthProviderTokenSource,
    classify_token_state,
    decide_token_action,
    read_token_file,
)
from kubecreds.types.tokens import TokenAction, TokenState

LOGGER = get_logger("kubecreds.credential_context")


class ActiveContext:
    """
    Live state of one resolved context.

    A new ActiveContext is built for every activation, so nothing
    auth-derived carries over from the previous context. Only token and
    token_expiry change afterwards, and only together.
    """

    def __init__(
        self,
        context_name: str,
        server: str | None,
        cluster: dict[str, Any],
        user: dict[str, Any],
        context: ContextReference | None = None,
        certificate_authority_path: Path | None = None,
        client_certificate_path: Path | None = None,
        client_key_path: Path | None = None,
        token: str | None = None,
        is_auth_provider: bool = False,
        materialized: frozenset[Path] = frozenset(),
    ):
        self.context_name = context_name
        self.server = server
        self.cluster = cluster
        self.user = user
        self.context = context
        self.certificate_authority_path = certificate_authority_path
        self.client_certificate_path = client_certificate_path
        self.client_key_path = client_key_path
        self.token = token
        self.token_expiry: int | None = None
        self.is_auth_provider = is_auth_provider
        self.materialized = materialized

    def __repr__(self) -> str:
        """String representation (never includes the token)."""
        return (
            f"ActiveContext(context_name='{self.context_name}', server='{self.server}', "
            f"is_auth_provider={self.is_auth_provider}, materialized={len(self.materialized)})"
        )


class CredentialContext:
    """
    Resolves a kubeconfig context into a server URL and credentials.

    Example:
    -------
        ```python
        with CredentialContext.load_from_file() as ctx:
            server = ctx.get_server()
            cert = (ctx.get_client_certificate_path(), ctx.get_client_key_path())
            ca = ctx.get_certificate_authority_path()
            headers = {"Authorization": f"Bearer {ctx.get_token()}"} if ctx.get_token() else {}

            ctx.activate_context("staging")  # previous temp files are deleted
        ```

    """

    def __init__(
        self,
        document: ConfigDocument | None = None,
        *,
        config_path: Path | None = None,
        command_runner: CommandRunner | None = None,
        path_query: PathQuery | None = None,
        temp_dir: str | Path | None = None,
        command_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize a credential context without activating anything.

        Args:
        ----
            document: Parsed kubeconfig document (None for in-cluster use)
            config_path: File the document came from; relative credential
                         paths are resolved against its directory
            command_runner: Executes auth-provider commands
            path_query: JSON-path evaluator
            temp_dir: Directory for materialized credential files
            command_timeout: Optional auth-provider command timeout in seconds
            clock: Source of the current epoch time

        """
        self._document = document
        self._config_path = config_path
        self._clock = clock
        self._lock = threading.RLock()
        self._active: ActiveContext | None = None

        self._owner = TempFileOwner(directory=temp_dir)
        self._finalizer = weakref.finalize(self, self._owner.release_all)
        self._materializer = CredentialMaterializer(
            self._owner, base_dir=config_path.parent if config_path is not None else None
        )
        self._token_source = AuthProviderTokenSource(
            path_query=path_query or JsonPathQuery(),
            command_runner=command_runner or SubprocessCommandRunner(),
            timeout=command_timeout,
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_document(
        cls,
        document: ConfigDocument | dict[str, Any],
        context_name: str | None = None,
        **kwargs: Any,
    ) -> "CredentialContext":
        """
        Build a context from an in-memory document and activate a context.

        Args:
        ----
            document: ConfigDocument or raw parsed mapping
            context_name: Context to activate (defaults to current-context)
            **kwargs: Passed to CredentialContext()

        Raises:
        ------
            KubeCredsParseError: If a raw mapping is not a valid kubeconfig
            KubeCredsNotFoundError: If the context cannot be resolved

        """
        if not isinstance(document, ConfigDocument):
            document = parse_document(document)

        name = context_name or document.current_context
        if not name:
            raise KubeCredsNotFoundError("No context name given and kubeconfig has no current-context")

        config = cls(document, **kwargs)
        try:
            config.activate_context(name)
        except BaseException:
            config.close()
            raise
        return config

    @classmethod
    def load_from_file(
        cls,
        path: str | Path | None = None,
        context_name: str | None = None,
        *,
        document_parser: DocumentParser | None = None,
        **kwargs: Any,
    ) -> "CredentialContext":
        """
        Load a kubeconfig file and activate a context.

        Falls back to $KUBECONFIG, then ~/.kube/config, when no path is given.

        Args:
        ----
            path: Kubeconfig path
            context_name: Context to activate (defaults to current-context)
            document_parser: Parser for the raw file (defaults to YAML)
            **kwargs: Passed to CredentialContext()

        Raises:
        ------
            KubeCredsConfigFileNotFoundError: If the file does not exist
            KubeCredsParseError: If the file is not a valid kubeconfig
            KubeCredsNotFoundError: If the context cannot be resolved
            KubeCredsCredentialDecodeError: If embedded credential data is malformed

        """
        config_path = resolve_config_path(path)
        document = load_document(config_path, parser=document_parser)
        return cls.from_document(document, context_name, config_path=config_path, **kwargs)

    @classmethod
    def load_in_cluster(
        cls,
        token_path: str | Path = SERVICE_ACCOUNT_TOKEN_PATH,
        ca_path: str | Path = SERVICE_ACCOUNT_CA_PATH,
        server: str = IN_CLUSTER_SERVER,
        **kwargs: Any,
    ) -> "CredentialContext":
        """
        Build a context from the pod's mounted service account.

        Raises
        ------
            KubeCredsEnvironmentError: If the service account token is not mounted

        """
        token_path = Path(token_path)
        if not token_path.is_file():
            raise KubeCredsEnvironmentError(
                f"Cannot load in-cluster config outside Kubernetes cluster\n"
                f"Service account token not found: {token_path}"
            )

        ca_path = Path(ca_path)
        config = cls(None, **kwargs)
        config._active = ActiveContext(
            context_name=IN_CLUSTER_CONTEXT_NAME,
            server=server,
            cluster={"server": server, "certificate-authority": str(ca_path)},
            user={"tokenFile": str(token_path)},
            certificate_authority_path=ca_path,
            token=read_token_file(token_path),
        )
        LOGGER.info(f"Loaded in-cluster config: server={server}")
        return config

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def _resolve_relative(self, value: str) -> Path:
        path = Path(value).expanduser()
        if self._config_path is not None and not path.is_absolute():
            path = self._config_path.parent / path
        return path

    def _initial_token(self, user: dict[str, Any]) -> tuple[str | None, bool]:
        """Return (token, is_auth_provider) as armed at activation time."""
        if user.get("auth-provider"):
            return None, True
        if user.get("token"):
            return str(user["token"]), False
        if user.get("tokenFile"):
            return read_token_file(self._resolve_relative(str(user["tokenFile"]))), False
        return None, False

    def activate_context(self, context_name: str) -> ActiveContext:
        """
        Switch to ``context_name``.

        Activation is all-or-nothing: if the context cannot be resolved or its
        credentials cannot be materialized, the previously active context is
        left exactly as it was and no new temp file survives. On success the
        previous context's temp files are deleted.

        Raises
        ------
            KubeCredsNotFoundError: If the context, cluster or user is missing
            KubeCredsCredentialDecodeError: If embedded credential data is malformed
            KubeCredsConfigurationError: If a credential value is unusable
            KubeCredsEnvironmentError: If the instance has been closed

        """
        with self._lock:
            if self.closed:
                raise KubeCredsEnvironmentError(
                    f"Cannot activate context '{context_name}': credential context is closed"
                )

            if self._document is None:
                raise KubeCredsNotFoundError(f"Cannot activate context '{context_name}': no kubeconfig loaded")

            context, cluster, user = self._document.resolve(context_name)

            server = cluster.cluster.get("server")
            if not server:
                LOGGER.warning(f"Cluster '{cluster.name}' has no server URL")

            token, is_auth_provider = self._initial_token(user.user)
            creds = self._materializer.materialize(cluster.cluster, user.user)

            active = ActiveContext(
                context_name=context_name,
                server=server,
                cluster=cluster.cluster,
                user=user.user,
                context=context.context,
                certificate_authority_path=creds.certificate_authority_path,
                client_certificate_path=creds.client_certificate_path,
                client_key_path=creds.client_key_path,
                token=token,
                is_auth_provider=is_auth_provider,
                materialized=creds.materialized,
            )

            previous, self._active = self._active, active
            if previous is not None:
                self._owner.release_many(previous.materialized)

            LOGGER.info(
                f"Activated context '{context_name}' (cluster='{cluster.name}', user='{user.name}', "
                f"auth_provider={is_auth_provider})"
            )
            return active

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    def get_token(self) -> str | None:
        """
        Get the bearer token for the active context.

        Static tokens are returned as-is. Auth-provider tokens are fetched by
        running the configured command when none is held yet or the stored
        expiry has been reached; otherwise the held token is returned.

        Raises
        ------
            KubeCredsAuthCommandError: If the auth-provider command fails

        """
        with self._lock:
            active = self._active
            if active is None:
                return None

            if active.is_auth_provider:
                action = decide_token_action(self._clock(), active.token, active.token_expiry)
                if action is TokenAction.REFRESH:
                    refresh = self._token_source.fetch(active.user)
                    active.token, active.token_expiry = refresh.token, refresh.expiry

            return active.token

    def get_token_state(self) -> TokenState:
        with self._lock:
            active = self._active
            if active is None:
                return TokenState.NO_TOKEN
            return classify_token_state(active.is_auth_provider, active.token, active.token_expiry, self._clock())

    def get_token_expiry(self) -> int | None:
        """Expiry of the current auth-provider token as epoch seconds, if known."""
        with self._lock:
            return self._active.token_expiry if self._active else None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _get(self, attribute: str) -> Any:
        with self._lock:
            return getattr(self._active, attribute) if self._active else None

    def get_server(self) -> str | None:
        return self._get("server")

    def get_certificate_authority_path(self) -> Path | None:
        return self._get("certificate_authority_path")

    def get_client_certificate_path(self) -> Path | None:
        return self._get("client_certificate_path")

    def get_client_key_path(self) -> Path | None:
        return self._get("client_key_path")

    def get_is_auth_provider(self) -> bool:
        return bool(self._get("is_auth_provider"))

    def get_active_context_name(self) -> str | None:
        return self._get("context_name")

    def get_cluster(self) -> dict[str, Any] | None:
        return self._get("cluster")

    def get_user(self) -> dict[str, Any] | None:
        return self._get("user")

    def get_context(self) -> ContextReference | None:
        return self._get("context")

    def get_document(self) -> ConfigDocument | None:
        return self._document

    def get_config_path(self) -> Path | None:
        return self._config_path

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        """Delete every temp file this instance created and deactivate it."""
        with self._lock:
            self._active = None
            if self._finalizer.alive:
                self._finalizer.detach()
            removed = self._owner.release_all()
            if removed:
                LOGGER.debug(f"Closed credential context, removed {removed} temp files")

    def __enter__(self) -> "CredentialContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"CredentialContext(context='{self.get_active_context_name()}', server='{self.get_server()}')"


def load_config(
    path: str | Path | None = None, context_name: str | None = None, **kwargs: Any
) -> CredentialContext:
    """
    Load credentials for the current runtime.

    Inside a pod (with no explicit path) the mounted service account is used;
    everywhere else the kubeconfig file is loaded.

    Example:
    -------
        ```python
        ctx = load_config()
        print(ctx.get_server())
        ```

    """
    if path is None and context_name is None and is_in_cluster():
        return CredentialContext.load_in_cluster(**kwargs)
    return CredentialContext.load_from_file(path, context_name, **kwargs)
