"""Path-keyed mutual exclusion for report files shared between processes."""

import os
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

_REGISTRY_LOCK = threading.Lock()
_THREAD_LOCKS: dict[str, threading.RLock] = {}


def _thread_lock(key: str) -> threading.RLock:
    with _REGISTRY_LOCK:
        lock = _THREAD_LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _THREAD_LOCKS[key] = lock
        return lock


class PathLock:
    """
    Serializes writers of one file across threads and processes.

    Threads in this process share an RLock keyed by the resolved path.
    Processes coordinate through a sidecar ``<file>.lock`` created with
    O_EXCL; a sidecar older than ``stale_after`` seconds (the timeout unless
    given) is considered abandoned and broken.
    """

    def __init__(
        self,
        path: str,
        timeout: float = 30.0,
        poll_interval: float = 0.05,
        stale_after: Optional[float] = None,
    ) -> None:
        self.path = str(Path(path).resolve())
        self.lock_path = self.path + ".lock"
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.stale_after = timeout if stale_after is None else stale_after
        self._thread_lock = _thread_lock(self.path)
        self._depth = 0

    def acquire(self) -> None:
        if not self._thread_lock.acquire(timeout=self.timeout):
            raise TimeoutError(f"Timed out waiting for lock on {self.path}")
        if self._depth:
            self._depth += 1
            return
        try:
            self._acquire_file()
        except BaseException:
            self._thread_lock.release()
            raise
        self._depth = 1

    def _acquire_file(self) -> None:
        Path(self.lock_path).parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                self._break_if_stale()
                if time.monotonic() >= deadline:
                    raise TimeoutError(f"Timed out waiting for lock file {self.lock_path}")
                time.sleep(self.poll_interval)
                continue
            with os.fdopen(fd, "w") as handle:
                handle.write(str(os.getpid()))
            return

    def _break_if_stale(self) -> None:
        try:
            age = time.time() - os.path.getmtime(self.lock_path)
        except FileNotFoundError:
            return
        if age > self.stale_after:
            try:
                os.remove(self.lock_path)
            except FileNotFoundError:
                pass

    def release(self) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0:
            try:
                os.remove(self.lock_path)
            except FileNotFoundError:
                pass
        self._thread_lock.release()

    def __enter__(self) -> "PathLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()
