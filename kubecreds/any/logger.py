"""Named loggers for kubecreds, backed by loguru."""

from typing import Any

from loguru import logger as _loguru_logger

_loggers: dict = {}


class KubeCredsLogger:
    """Forwards to loguru with the module name bound as ``logger_name``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._log = _loguru_logger.bind(logger_name=name)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log.exception(msg, *args, **kwargs)


def get_logger(name: str) -> KubeCredsLogger:
    """
    Get the logger for a kubecreds module.

    Args:
    ----
        name: Dotted module name, e.g. "kubecreds.credentials.token"

    Returns:
    -------
        Cached KubeCredsLogger for that name

    """
    if name not in _loggers:
        _loggers[name] = KubeCredsLogger(name)
    return _loggers[name]
