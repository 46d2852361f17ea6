"""Process execution for auth-provider commands."""

import shlex
import subprocess

from kubecreds.any.exceptions import KubeCredsAuthCommandError
from kubecreds.any.logger import get_logger
from kubecreds.any.protocols import CommandResult
from kubecreds.any.utils import run_command

LOGGER = get_logger("kubecreds.credentials.commands")


class SubprocessCommandRunner:
    """
    Runs commands with ``subprocess`` via run_command.

    Implements the CommandRunner protocol.

    Example:
    -------
        ```python
        runner = SubprocessCommandRunner()
        result = runner.run(["gcloud", "config", "config-helper", "--format=json"])
        if result.exit_code == 0:
            print(result.stdout)
        ```

    """

    def run(self, argv: list[str], timeout: float | None = None) -> CommandResult:
        """Run ``argv`` and return its stdout and exit code without raising on failure."""
        command_line = shlex.join(argv)
        try:
            result = run_command(argv, check=False, timeout=timeout)
        except FileNotFoundError as e:
            raise KubeCredsAuthCommandError(
                f'error executing access token command "{command_line}": executable not found',
                command=command_line,
            ) from e
        except PermissionError as e:
            raise KubeCredsAuthCommandError(
                f'error executing access token command "{command_line}": {e}',
                command=command_line,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise KubeCredsAuthCommandError(
                f'error executing access token command "{command_line}": timed out after {timeout}s',
                command=command_line,
            ) from e

        LOGGER.debug(f"Command exited with code {result.returncode}: {argv[0]}")
        return CommandResult(stdout=result.stdout or "", exit_code=result.returncode, stderr=result.stderr or "")

    def __repr__(self) -> str:
        """String representation."""
        return "SubprocessCommandRunner()"
