"""
Dependency injection container for kubecreds.

This container wires the external collaborators (process execution, JSON-path
queries, YAML parsing) and auto-selects how credentials are loaded based on
context (in-cluster service account vs kubeconfig file).
Uses dependency-injector for clean DI with singletons.
"""

from dependency_injector import containers, providers

from kubecreds.any.context import is_in_cluster
from kubecreds.any.protocols import CommandRunner, DocumentParser, PathQuery


def _context_selector() -> str:
    """Return 'cluster' or 'local' based on context for Selector provider."""
    return "cluster" if is_in_cluster() else "local"


def _build_cluster_context(command_runner, path_query):
    from kubecreds.credential_context import CredentialContext

    return CredentialContext.load_in_cluster(command_runner=command_runner, path_query=path_query)


def _build_local_context(command_runner, path_query, document_parser):
    from kubecreds.credential_context import CredentialContext

    return CredentialContext.load_from_file(
        command_runner=command_runner,
        path_query=path_query,
        document_parser=document_parser,
    )


class KubeCredsIoCContainer(containers.DeclarativeContainer):
    """
    Inversion of Control (IoC) container for kubecreds.

    Example:
    -------
        ```python
        from kubecreds.any.container import KubeCredsIoCContainer

        container = KubeCredsIoCContainer()

        # Collaborators (singletons, overridable in tests)
        runner = container.command_runner()

        # Credential context, auto-wired for in-cluster or kubeconfig use
        ctx = container.credential_context()
        print(ctx.get_server())

        # Override in tests
        container.command_runner.override(fake_runner)
        ```

    """

    # Singleton: runs auth-provider commands
    command_runner = providers.Singleton(
        lambda: __import__(
            "kubecreds.credentials.commands",
            fromlist=["SubprocessCommandRunner"],
        ).SubprocessCommandRunner()
    )

    # Singleton: evaluates JSON-path expressions
    path_query = providers.Singleton(
        lambda: __import__(
            "kubecreds.config.query",
            fromlist=["JsonPathQuery"],
        ).JsonPathQuery()
    )

    # Singleton: parses raw kubeconfig bytes
    document_parser = providers.Singleton(
        lambda: __import__(
            "kubecreds.config.loaders",
            fromlist=["YamlDocumentParser"],
        ).YamlDocumentParser()
    )

    # Singleton: credential context for the current runtime
    # Auto-selects the service account (cluster) or the kubeconfig file (local)
    credential_context = providers.Singleton(
        providers.Selector(
            lambda: _context_selector(),
            cluster=providers.Factory(
                _build_cluster_context,
                command_runner=command_runner,
                path_query=path_query,
            ),
            local=providers.Factory(
                _build_local_context,
                command_runner=command_runner,
                path_query=path_query,
                document_parser=document_parser,
            ),
        )
    )


# Global singleton container instance
container = KubeCredsIoCContainer()


def get_command_runner() -> CommandRunner:
    """Get the command runner (singleton)."""
    return container.command_runner()


def get_path_query() -> PathQuery:
    """Get the JSON-path evaluator (singleton)."""
    return container.path_query()


def get_document_parser() -> DocumentParser:
    """Get the kubeconfig document parser (singleton)."""
    return container.document_parser()


def get_credential_context():
    """
    Get the credential context for the current runtime (singleton).

    Returns:
    -------
        CredentialContext loaded from the service account in-cluster, or from
        $KUBECONFIG / ~/.kube/config elsewhere

    Example:
    -------
        ```python
        from kubecreds.any.container import get_credential_context

        ctx = get_credential_context()
        token = ctx.get_token()
        ```

    """
    return container.credential_context()
