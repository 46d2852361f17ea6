"""
Protocol definitions for kubecreds.

These protocols define the contracts for the external collaborators a
CredentialContext depends on. Protocols enable dependency injection, so tests
can swap in stubs for YAML parsing, JSON-path queries and process execution.

All protocols follow PEP 544 (Structural Subtyping / Protocol).
"""

from typing import Any, NamedTuple, Protocol, runtime_checkable


class CommandResult(NamedTuple):
    """Outcome of running an external command."""

    stdout: str
    exit_code: int
    stderr: str = ""


@runtime_checkable
class DocumentParser(Protocol):
    """
    Protocol for turning raw kubeconfig bytes into a generic mapping.

    Implementations:
    - config/loaders.py - YamlDocumentParser (PyYAML)
    """

    def parse(self, data: bytes) -> Any:
        """
        Parse raw document content.

        Returns
        -------
            Parsed document (normally a dict, None for an empty document)

        Raises
        ------
            KubeCredsParseError: If the content is not valid

        """
        ...


@runtime_checkable
class PathQuery(Protocol):
    """
    Protocol for evaluating a JSON-path expression against nested data.

    Implementations:
    - config/query.py - JsonPathQuery (jsonpath-ng)
    """

    def query(self, document: Any, expression: str) -> Any | None:
        """
        Select a value out of ``document``.

        Args:
        ----
            document: Nested dict/list data
            expression: JSON-path expression, e.g. "$.auth-provider.config.cmd-path"

        Returns:
        -------
            First matching value, or None when nothing matches

        """
        ...


@runtime_checkable
class CommandRunner(Protocol):
    """
    Protocol for executing an external command.

    Implementations:
    - credentials/commands.py - SubprocessCommandRunner
    """

    def run(self, argv: list[str], timeout: float | None = None) -> CommandResult:
        """
        Run ``argv`` to completion.

        Args:
        ----
            argv: Executable followed by its ordered arguments
            timeout: Optional timeout in seconds

        Returns:
        -------
            CommandResult with stdout and exit code

        Raises:
        ------
            KubeCredsAuthCommandError: If the executable is missing or the timeout expires

        """
        ...
