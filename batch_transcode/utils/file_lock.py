"""
Cross-process file lock for batch_transcode.

Serializes writers that share the same lock identity (normally a log file)
even when they live in unrelated processes. The lock is a sidecar file next
to the protected resource, locked with ``fcntl.flock`` on POSIX and
``msvcrt.locking`` on Windows.
"""

import os
import platform
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Union

IS_WINDOWS = platform.system() == "Windows"
if IS_WINDOWS:
    import msvcrt
else:
    import fcntl

# One in-process mutex per lock identity; flock alone does not serialize
# threads that share a process on every platform.
_THREAD_LOCKS: Dict[str, threading.Lock] = {}
_THREAD_LOCKS_GUARD = threading.Lock()


def lock_path_for(resource: Union[str, Path]) -> Path:
    """Sidecar lock file path for a resource."""
    resource = Path(resource)
    return resource.with_name(resource.name + ".lock")


def _thread_lock_for(key: str) -> threading.Lock:
    with _THREAD_LOCKS_GUARD:
        lock = _THREAD_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _THREAD_LOCKS[key] = lock
        return lock


class NamedFileLock:
    """Exclusive lock keyed by the identity of a resource path.

    Usage:
        with NamedFileLock(log_path):
            append_line(log_path, line)
    """

    def __init__(self, resource: Union[str, Path], poll_interval: float = 0.05):
        self.resource = Path(resource).resolve()
        self.lock_file = lock_path_for(self.resource)
        self.poll_interval = poll_interval
        self._thread_lock = _thread_lock_for(str(self.lock_file))
        self._fd: Optional[int] = None

    @property
    def is_locked(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        self._thread_lock.acquire()
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.lock_file), os.O_RDWR | os.O_CREAT, 0o644)
            try:
                self._lock_fd(fd)
            except BaseException:
                os.close(fd)
                raise
            self._fd = fd
        except BaseException:
            self._thread_lock.release()
            raise

    def release(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            self._unlock_fd(fd)
        finally:
            os.close(fd)
            self._thread_lock.release()

    def _lock_fd(self, fd: int) -> None:
        if IS_WINDOWS:
            # msvcrt.locking only retries for ~10s; keep polling until granted.
            while True:
                try:
                    os.lseek(fd, 0, os.SEEK_SET)
                    msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
                    return
                except OSError:
                    time.sleep(self.poll_interval)
        else:
            fcntl.flock(fd, fcntl.LOCK_EX)

    def _unlock_fd(self, fd: int) -> None:
        if IS_WINDOWS:
            os.lseek(fd, 0, os.SEEK_SET)
            msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        else:
            fcntl.flock(fd, fcntl.LOCK_UN)

    def __enter__(self) -> "NamedFileLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> bool:
        self.release()
        return False
