"""
Temporary file lifecycle for materialized credentials.

Each CredentialContext owns a TempFileOwner that creates, tracks and deletes
its own files. Every owner also records its paths in the process-wide
TempFileRegistry, which exists only so shutdown() can sweep leftovers at
interpreter exit. The registry relates paths to the process; it never decides
when an owner's file goes away.

A file is deleted only when it is tracked and still exists. Paths that were
not created here (e.g. ``client-certificate: /etc/ssl/me.crt``) are never
touched.
"""

import atexit
import os
import tempfile
import threading
from pathlib import Path

from kubecreds.any.logger import get_logger

LOGGER = get_logger("kubecreds.credentials.tempfiles")

TEMP_FILE_PREFIX = "kubecreds-"


def _unlink(path: Path) -> bool:
    """Delete ``path`` if it exists. Failures are logged, not raised."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        LOGGER.warning(f"Failed to delete temp file {path}: {e}")
        return False
    return True


class TempFileRegistry:
    """Thread-safe set of every temp file created in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: set[Path] = set()

    def register(self, path: Path) -> None:
        with self._lock:
            self._paths.add(path)

    def unregister(self, path: Path) -> None:
        with self._lock:
            self._paths.discard(path)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def paths(self) -> set[Path]:
        """Snapshot of the registered paths."""
        with self._lock:
            return set(self._paths)

    def sweep(self) -> int:
        """
        Delete every registered file, regardless of which owner created it.

        Returns
        -------
            Number of files removed from disk

        """
        with self._lock:
            paths, self._paths = self._paths, set()

        removed = sum(1 for path in paths if _unlink(path))
        if paths:
            LOGGER.debug(f"Swept {removed} of {len(paths)} registered temp files")
        return removed


REGISTRY = TempFileRegistry()


def shutdown() -> int:
    """Delete every temp file still registered in this process. Runs at exit."""
    return REGISTRY.sweep()


atexit.register(shutdown)


class TempFileOwner:
    """
    Creates and owns temp files for a single CredentialContext.

    Example:
    -------
        ```python
        owner = TempFileOwner()
        ca_path = owner.write(b"-----BEGIN CERTIFICATE-----...")
        ...
        owner.release(ca_path)  # delete one file
        owner.release_all()     # delete everything this owner created
        ```

    """

    def __init__(self, directory: str | Path | None = None, registry: TempFileRegistry | None = None):
        """
        Initialize the owner.

        Args:
        ----
            directory: Where to create files (defaults to the system temp dir)
            registry: Process-wide registry (defaults to the module REGISTRY)

        """
        self._directory = str(directory) if directory is not None else None
        self._registry = registry if registry is not None else REGISTRY
        self._lock = threading.Lock()
        self._paths: set[Path] = set()

    @property
    def paths(self) -> set[Path]:
        """Snapshot of the files this owner is tracking."""
        with self._lock:
            return set(self._paths)

    def owns(self, path: Path | None) -> bool:
        if path is None:
            return False
        with self._lock:
            return path in self._paths

    def write(self, data: bytes) -> Path:
        """
        Write ``data`` to a new temp file readable only by the current user.

        Returns
        -------
            Path to the new file, already tracked by this owner and the registry

        """
        fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=self._directory)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except BaseException:
            _unlink(path)
            raise

        with self._lock:
            self._paths.add(path)
        self._registry.register(path)

        LOGGER.debug(f"Created temp file {path}")
        return path

    def release(self, path: Path | None) -> bool:
        """
        Delete ``path`` if this owner created it and it still exists.

        Returns
        -------
            True if a file was removed from disk

        """
        if path is None:
            return False

        with self._lock:
            if path not in self._paths:
                return False
            self._paths.discard(path)

        self._registry.unregister(path)
        removed = _unlink(path)
        if removed:
            LOGGER.debug(f"Deleted temp file {path}")
        return removed

    def release_many(self, paths) -> int:
        return sum(1 for path in list(paths) if self.release(path))

    def release_all(self) -> int:
        """Delete every file this owner is still tracking."""
        return self.release_many(self.paths)

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __repr__(self) -> str:
        """String representation."""
        return f"TempFileOwner(files={len(self)}, directory={self._directory!r})"
