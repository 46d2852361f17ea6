"""Utility functions for kubecreds."""

import subprocess

from kubecreds.any.logger import get_logger

LOGGER = get_logger("kubecreds.any.utils")


def run_command(
    cmd: list[str],
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """
    Run a command with consistent handling.

    The command is never passed through a shell; ``cmd`` is the argument vector.
    Output is always captured as text.

    Args:
    ----
        cmd: Command and arguments as a list
        check: If True, raise CalledProcessError on non-zero exit
        timeout: Optional timeout in seconds

    Returns:
    -------
        CompletedProcess instance with returncode, stdout, stderr

    Raises:
    ------
        subprocess.CalledProcessError: If check=True and command fails
        subprocess.TimeoutExpired: If timeout is exceeded
        FileNotFoundError: If the executable does not exist

    Example:
    -------
        ```python
        from kubecreds.any.utils import run_command

        result = run_command(["gcloud", "config", "config-helper", "--format=json"])
        print(result.stdout)

        # Don't raise on failure
        result = run_command(["false"], check=False)
        if result.returncode != 0:
            print(f"Command failed: {result.stderr}")
        ```

    """
    # Arguments may carry credentials
    LOGGER.debug(f"Running command: {cmd[0]} ({len(cmd) - 1} args)")

    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
    )
