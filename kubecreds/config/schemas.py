"""
Kubeconfig document schemas.

This module defines Pydantic models for a kubeconfig-style document:
- clusters: named cluster entries (server URL, CA material)
- users: named user entries (token, client cert/key, auth-provider config)
- contexts: named pairings of one cluster and one user
- current-context: default context name

Cluster and user bodies are kept as raw mappings so that every field the
document carries stays reachable (e.g. ``certificate-authority-data`` or an
arbitrary ``auth-provider.config``).
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kubecreds.any.exceptions import KubeCredsNotFoundError


def _empty_if_none(value: Any, factory: type) -> Any:
    return factory() if value is None else value


class NamedCluster(BaseModel):
    """
    Named cluster entry.

    Example:
    -------
        - name: prod
          cluster:
            server: https://10.0.0.1:6443
            certificate-authority-data: LS0tLS1CRUdJTi...

    """

    name: Annotated[str, Field(description="Cluster name referenced by contexts")]
    cluster: Annotated[dict[str, Any], Field(default_factory=dict, description="Raw cluster body")]

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("cluster", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat ``cluster: null`` as an empty body."""
        return _empty_if_none(v, dict)


class NamedUser(BaseModel):
    """
    Named user entry.

    Example:
    -------
        - name: gke-user
          user:
            auth-provider:
              name: gcp
              config:
                cmd-path: /usr/bin/gcloud
                cmd-args: config config-helper --format=json
                token-key: '{.credential.access_token}'
                expiry-key: '{.credential.token_expiry}'

    """

    name: Annotated[str, Field(description="User name referenced by contexts")]
    user: Annotated[dict[str, Any], Field(default_factory=dict, description="Raw user body")]

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("user", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat ``user: null`` as an empty body."""
        return _empty_if_none(v, dict)


class ContextReference(BaseModel):
    """The cluster/user pairing of a context."""

    cluster: str | None = None
    user: str | None = None
    namespace: str | None = None

    model_config = ConfigDict(extra="allow", frozen=True)


class NamedContext(BaseModel):
    """Named context entry."""

    name: Annotated[str, Field(description="Context name")]
    context: Annotated[ContextReference, Field(default_factory=ContextReference)]

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("context", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat ``context: null`` as an empty reference."""
        return _empty_if_none(v, dict)


class ConfigDocument(BaseModel):
    """
    Parsed, read-only kubeconfig document.

    Example:
    -------
        apiVersion: v1
        kind: Config
        current-context: prod
        clusters: [...]
        users: [...]
        contexts: [...]

    """

    current_context: Annotated[str | None, Field(default=None, alias="current-context")]
    clusters: Annotated[list[NamedCluster], Field(default_factory=list)]
    users: Annotated[list[NamedUser], Field(default_factory=list)]
    contexts: Annotated[list[NamedContext], Field(default_factory=list)]

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @field_validator("clusters", "users", "contexts", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat ``clusters: null`` (and friends) as an empty list."""
        return _empty_if_none(v, list)

    def find_context(self, name: str) -> NamedContext | None:
        """Return the first context named ``name``."""
        return next((item for item in self.contexts if item.name == name), None)

    def find_cluster(self, name: str) -> NamedCluster | None:
        """Return the first cluster named ``name``."""
        return next((item for item in self.clusters if item.name == name), None)

    def find_user(self, name: str) -> NamedUser | None:
        """Return the first user named ``name``."""
        return next((item for item in self.users if item.name == name), None)

    def resolve(self, context_name: str) -> tuple[NamedContext, NamedCluster, NamedUser]:
        """
        Resolve a context name into its context, cluster and user entries.

        Args:
        ----
            context_name: Name of the context to resolve

        Returns:
        -------
            Tuple of (context, cluster, user) entries

        Raises:
        ------
            KubeCredsNotFoundError: If the context, or the cluster/user it references, is missing

        """
        context = self.find_context(context_name)
        if context is None:
            available = ", ".join(item.name for item in self.contexts) or "none"
            raise KubeCredsNotFoundError(
                f"Context '{context_name}' not found in kubeconfig\n" f"Available contexts: {available}"
            )

        cluster_name = context.context.cluster
        cluster = self.find_cluster(cluster_name) if cluster_name else None
        if cluster is None:
            raise KubeCredsNotFoundError(
                f"Cluster '{cluster_name}' referenced by context '{context_name}' not found in kubeconfig"
            )

        user_name = context.context.user
        user = self.find_user(user_name) if user_name else None
        if user is None:
            raise KubeCredsNotFoundError(
                f"User '{user_name}' referenced by context '{context_name}' not found in kubeconfig"
            )

        return context, cluster, user
