"""
Vault Locking — advisory lock around a load-modify-save cycle.

Serializes writers across processes (``flock`` on POSIX, ``msvcrt`` on
Windows) and across threads of one process sharing a store.
"""
import os
import logging
import threading
from pathlib import Path
from typing import Union

if os.name == "nt":
    import msvcrt
else:
    import fcntl

from .permissions import FILE_MODE, restrict

logger = logging.getLogger("debrief.vault")


class FileLock:
    """Exclusive advisory lock held on a sidecar lock file.

    Re-entrant within one thread: nested ``with`` blocks on the same
    instance only take the OS lock once.
    """

    def __init__(self, lock_file: Union[str, Path]):
        self.lock_file = Path(lock_file)
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._fd = None

    def acquire(self) -> None:
        self._thread_lock.acquire()
        if self._depth == 0:
            try:
                self._fd = self._lock_os()
            except BaseException:
                self._thread_lock.release()
                raise
        self._depth += 1

    def release(self) -> None:
        self._depth -= 1
        try:
            if self._depth == 0:
                fd, self._fd = self._fd, None
                self._unlock_os(fd)
        finally:
            self._thread_lock.release()

    def _lock_os(self) -> int:
        fd = os.open(str(self.lock_file), os.O_RDWR | os.O_CREAT, FILE_MODE)
        try:
            if os.name == "nt":
                msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
            else:
                fcntl.flock(fd, fcntl.LOCK_EX)
            restrict(self.lock_file, FILE_MODE)
        except BaseException:
            os.close(fd)
            raise
        return fd

    def _unlock_os(self, fd: int) -> None:
        try:
            if os.name == "nt":
                os.lseek(fd, 0, os.SEEK_SET)
                msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
