"""
Bearer token resolution.

Static tokens come straight from the user entry. Auth-provider tokens come from
an external command (e.g. ``gcloud config config-helper --format=json``) whose
JSON output is queried with the configured ``token-key`` and ``expiry-key``.

The refresh decision is a pure function of (now, token, expiry) so it can be
tested without running anything; process execution and JSON-path evaluation
are injected.
"""

import json
import re
import shlex
from datetime import timezone
from pathlib import Path
from typing import Any, NamedTuple

from dateutil import parser as date_parser

from kubecreds.any.exceptions import KubeCredsAuthCommandError, KubeCredsConfigurationError
from kubecreds.any.logger import get_logger
from kubecreds.any.protocols import CommandRunner, PathQuery
from kubecreds.config.query import normalize_path_expression
from kubecreds.types.tokens import TokenAction, TokenState

LOGGER = get_logger("kubecreds.credentials.token")

CMD_PATH_QUERY = "$.auth-provider.config.cmd-path"
CMD_ARGS_QUERY = "$.auth-provider.config.cmd-args"
TOKEN_KEY_QUERY = "$.auth-provider.config.token-key"
EXPIRY_KEY_QUERY = "$.auth-provider.config.expiry-key"

_EPOCH_PATTERN = re.compile(r"^[+-]?\d+(\.\d+)?$")


class TokenRefresh(NamedTuple):
    """Result of one auth-provider command run."""

    token: str | None
    expiry: int | None


def decide_token_action(now: float, token: str | None, expiry: int | None) -> TokenAction:
    """
    Decide whether an auth-provider token must be refreshed.

    A token is refreshed when its expiry has been reached or when none is held.
    A token without an expiry stays valid once fetched.

    Args:
    ----
        now: Current time as epoch seconds
        token: Token currently held, if any
        expiry: Expiry of that token as epoch seconds, if known

    Returns:
    -------
        TokenAction.REFRESH or TokenAction.RETURN_CACHED

    """
    if expiry is not None and now >= expiry:
        return TokenAction.REFRESH
    if not token:
        return TokenAction.REFRESH
    return TokenAction.RETURN_CACHED


def classify_token_state(is_auth_provider: bool, token: str | None, expiry: int | None, now: float) -> TokenState:
    """Map a context's token fields onto the token state machine."""
    if is_auth_provider:
        if decide_token_action(now, token, expiry) is TokenAction.REFRESH:
            return TokenState.DYNAMIC_EXPIRED
        return TokenState.DYNAMIC_FRESH
    if token:
        return TokenState.STATIC_TOKEN
    return TokenState.NO_TOKEN


def parse_expiry(value: Any) -> int | None:
    """
    Convert an expiry value from command output into epoch seconds.

    Integers are already epoch seconds. Strings are either numeric epoch
    seconds or calendar timestamps in any format dateutil understands
    (RFC 3339, RFC 1123, ...). A timestamp without an offset is UTC.

    Raises
    ------
        ValueError: If the value cannot be interpreted as a timestamp

    """
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        raise ValueError(f"Unsupported expiry value: {value!r}")

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return int(value)

    if isinstance(value, str):
        text = value.strip()
        if _EPOCH_PATTERN.match(text):
            return int(float(text))

        try:
            parsed = date_parser.parse(text)
        except (date_parser.ParserError, OverflowError) as e:
            raise ValueError(f"Unreadable expiry timestamp: {value!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp())

    raise ValueError(f"Unsupported expiry value of type {type(value).__name__}: {value!r}")


def read_token_file(path: str | Path) -> str:
    """
    Read a static token from a ``tokenFile`` entry.

    Raises
    ------
        KubeCredsConfigurationError: If the file cannot be read

    """
    token_path = Path(path).expanduser()
    try:
        return token_path.read_text().strip()
    except OSError as e:
        raise KubeCredsConfigurationError(f"Cannot read tokenFile {token_path}: {e}") from e


class AuthProviderTokenSource:
    """
    Runs an auth-provider command and extracts token and expiry from its output.

    Example:
    -------
        ```python
        source = AuthProviderTokenSource(JsonPathQuery(), SubprocessCommandRunner())
        refresh = source.fetch(user)
        refresh.token   # "ya29.a0..."
        refresh.expiry  # 1735689600
        ```

    """

    def __init__(self, path_query: PathQuery, command_runner: CommandRunner, timeout: float | None = None):
        """
        Initialize the token source.

        Args:
        ----
            path_query: JSON-path evaluator for the user entry and command output
            command_runner: Executes the auth-provider command
            timeout: Optional command timeout in seconds (None waits forever)

        """
        self._path_query = path_query
        self._command_runner = command_runner
        self._timeout = timeout

    def build_command(self, user: dict[str, Any]) -> list[str]:
        """
        Build the argument vector from ``cmd-path`` and ``cmd-args``.

        ``cmd-args`` may be a single string (split like a shell would, without
        any expansion) or a list of arguments.

        Raises
        ------
            KubeCredsAuthCommandError: If no ``cmd-path`` is configured

        """
        cmd_path = self._path_query.query(user, CMD_PATH_QUERY)
        if not cmd_path:
            raise KubeCredsAuthCommandError("error retrieving token: auth-provider config has no cmd-path")

        cmd_args = self._path_query.query(user, CMD_ARGS_QUERY)
        if cmd_args is None:
            args: list[str] = []
        elif isinstance(cmd_args, list):
            args = [str(arg) for arg in cmd_args]
        else:
            args = shlex.split(str(cmd_args))

        return [str(cmd_path), *args]

    def _query_key(self, user: dict[str, Any], key_query: str, output: Any) -> Any | None:
        key = self._path_query.query(user, key_query)
        if not key:
            return None
        return self._path_query.query(output, normalize_path_expression(str(key)))

    def fetch(self, user: dict[str, Any]) -> TokenRefresh:
        """
        Run the auth-provider command and extract a new token and expiry.

        Args:
        ----
            user: Raw user body containing ``auth-provider``

        Returns:
        -------
            TokenRefresh; a field is None when its key is not configured or
            not present in the output

        Raises:
        ------
            KubeCredsAuthCommandError: If the command fails, returns something
                other than a JSON object/array, or reports an unreadable expiry

        """
        argv = self.build_command(user)
        command_line = shlex.join(argv)

        LOGGER.info(f"Refreshing auth-provider token with: {argv[0]}")
        result = self._command_runner.run(argv, timeout=self._timeout)

        if result.exit_code != 0:
            output = "\n".join(part for part in (result.stdout.strip(), result.stderr.strip()) if part)
            raise KubeCredsAuthCommandError(
                f'error executing access token command "{command_line}": {output}',
                command=command_line,
                output=output,
                exit_code=result.exit_code,
            )

        try:
            output = json.loads(result.stdout)
        except json.JSONDecodeError:
            output = None

        if not isinstance(output, dict | list):
            raise KubeCredsAuthCommandError(
                "error retrieving token: auth provider failed to return valid data",
                command=command_line,
                output=result.stdout,
                exit_code=result.exit_code,
            )

        raw_expiry = self._query_key(user, EXPIRY_KEY_QUERY, output)
        try:
            expiry = parse_expiry(raw_expiry)
        except ValueError as e:
            raise KubeCredsAuthCommandError(
                f"error retrieving token: unreadable expiry {raw_expiry!r}: {e}",
                command=command_line,
                exit_code=result.exit_code,
            ) from e

        raw_token = self._query_key(user, TOKEN_KEY_QUERY, output)
        token = str(raw_token) if raw_token not in (None, "") else None

        if token is None:
            LOGGER.warning(f"Auth-provider command returned no token: {argv[0]}")
        else:
            LOGGER.debug(f"Auth-provider token refreshed (expiry={expiry})")

        return TokenRefresh(token=token, expiry=expiry)

    def __repr__(self) -> str:
        """String representation."""
        return f"AuthProviderTokenSource(timeout={self._timeout})"
