# =============================================================================
# Crash-Safe File Helpers
# =============================================================================
# Two small building blocks for the persisted filter state:
#
#   - atomic_write(): write to a temporary file in the target directory,
#     fsync it, then os.replace() it over the target. A crash at any point
#     leaves either the old complete file or the new complete file.
#
#   - ExclusiveLock: an advisory, non-blocking lock on a sidecar ".lock" file.
#     A filter holds it from open to close so two processes can never write
#     the same store.
# =============================================================================

import logging
import os
import tempfile
from pathlib import Path

from junkfilter.errors import StoreLockedError

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


def atomic_write(path: Path, data: bytes) -> None:
    """
    Replace the file at path with data, atomically.

    Args:
        path: Destination file. Its parent directory is created if needed.
        data: Complete new file contents.

    Raises:
        OSError: If writing fails. The previous file, if any, is untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    _fsync_directory(path.parent)


def _fsync_directory(directory: Path) -> None:
    """Make a rename durable. Not possible (nor needed) on Windows."""
    if os.name == "nt":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class ExclusiveLock:
    """
    Advisory exclusive lock held on a ".lock" file next to a store.

    Acquisition never blocks: if someone else holds the lock,
    StoreLockedError is raised immediately.

    Usage:
        >>> lock = ExclusiveLock(Path("words.json.lock"))
        >>> lock.acquire()
        >>> ...
        >>> lock.release()

    Attributes:
        path: Path of the lock file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._fd: int | None = None

    @property
    def is_held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        if self._fd is not None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            if os.name == "nt":
                msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
            else:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            raise StoreLockedError(f"{self.path} is held by another filter") from e

        self._fd = fd
        logger.debug(f"Acquired lock {self.path}")

    def release(self) -> None:
        if self._fd is None:
            return

        fd, self._fd = self._fd, None
        try:
            if os.name == "nt":
                msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        logger.debug(f"Released lock {self.path}")
