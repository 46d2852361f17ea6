"""
KubeCreds exception classes.

This module defines custom exceptions for kubecreds to avoid masking built-in Python errors
and to provide clear, specific error handling for different failure scenarios.

All kubecreds exceptions follow the naming convention KubeCreds*Error.
"""


class KubeCredsError(Exception):
    """
    Base exception for all kubecreds errors.

    All kubecreds exceptions inherit from this, allowing users to catch all kubecreds-specific
    errors with a single except clause while not catching unrelated Python errors.
    """

    pass


class KubeCredsConfigFileNotFoundError(KubeCredsError):
    """
    Raised when the kubeconfig path (explicit, $KUBECONFIG or ~/.kube/config) does not exist.

    Example:
    -------
        >>> CredentialContext.load_from_file("/nope/config")
        KubeCredsConfigFileNotFoundError: Config file does not exist: /nope/config

    """

    pass


class KubeCredsParseError(KubeCredsError):
    """Raised when a kubeconfig document cannot be parsed or has the wrong shape."""

    pass


class KubeCredsNotFoundError(KubeCredsError):
    """
    Raised when a named context, or the cluster/user it references, is missing.

    Example:
    -------
        >>> ctx.activate_context("staging")
        KubeCredsNotFoundError: Context 'staging' not found in kubeconfig...

    """

    pass


class KubeCredsCredentialDecodeError(KubeCredsError):
    """Raised when embedded *-data credential material is not valid base64."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class KubeCredsAuthCommandError(KubeCredsError):
    """
    Raised when an auth-provider command cannot produce a token.

    This covers a missing executable, a non-zero exit code, a timeout and
    output that is not a JSON object or array.

    Attributes:
    ----------
        command: The command line that was executed (or attempted)
        output: Captured stdout/stderr of the command, if any
        exit_code: Process exit code, if the command ran

    """

    def __init__(
        self,
        message: str,
        command: str | None = None,
        output: str | None = None,
        exit_code: int | None = None,
    ):
        super().__init__(message)
        self.command = command
        self.output = output
        self.exit_code = exit_code


class KubeCredsConfigurationError(KubeCredsError):
    """
    Raised when a kubeconfig value is present but unusable.

    This includes an unreadable tokenFile or a non-mapping cluster/user entry.
    """

    pass


class KubeCredsEnvironmentError(KubeCredsError):
    """
    Raised when code is executed in the wrong runtime context.

    Example:
    -------
        >>> CredentialContext.load_in_cluster()  # On dev machine
        KubeCredsEnvironmentError: Cannot load in-cluster config outside Kubernetes cluster

    """

    pass
