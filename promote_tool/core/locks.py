# promote_tool/core/locks.py
"""Per-environment transition locks"""

import json
import logging
import os
import threading
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

from ..api.exceptions import TransitionInProgressError
from ..utils.file_utils import release_lock_fd, try_lock_fd
from ..utils.time_utils import format_timestamp, utcnow

logger = logging.getLogger(__name__)


@dataclass
class LockInfo:
    """Who holds an environment lock"""
    environment: str
    holder: str
    pid: int
    acquired_at: str

    def describe(self) -> str:
        return f"{self.holder} (pid {self.pid}, since {self.acquired_at})"


class EnvironmentLockManager:
    """Non-blocking, non-reentrant mutual exclusion per environment

    A second attempt to lock an environment fails immediately with
    TransitionInProgressError instead of waiting. Locks are tracked in
    process and mirrored with ``fcntl.flock`` on ``<lock_dir>/<env>.lock``
    so that separate CLI invocations exclude each other as well. The OS
    releases the file lock if the holding process dies.
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)
        self._guard = threading.Lock()
        self._held: Dict[str, LockInfo] = {}
        self._fds: Dict[str, int] = {}
        self._pending: Dict[str, Future] = {}

    def _lock_path(self, environment: str) -> Path:
        return self.lock_dir / f"{environment}.lock"

    def acquire(self, environment: str, holder: str) -> LockInfo:
        """Take the lock for environment

        Raises:
            TransitionInProgressError: If the lock is already held
        """
        with self._guard:
            if environment in self._held:
                raise TransitionInProgressError(environment, self._held[environment].describe())

            lock_path = self._lock_path(environment)
            lock_fd = try_lock_fd(lock_path)
            if lock_fd is None:
                other = self._read_info(environment)
                raise TransitionInProgressError(environment, other.describe() if other else None)

            info = LockInfo(
                environment=environment,
                holder=holder,
                pid=os.getpid(),
                acquired_at=format_timestamp(utcnow()),
            )
            os.ftruncate(lock_fd, 0)
            os.pwrite(lock_fd, json.dumps(info.__dict__).encode('utf-8'), 0)

            self._held[environment] = info
            self._fds[environment] = lock_fd

        logger.debug("Locked %s for %s", environment, holder)
        return info

    def release(self, environment: str) -> None:
        """Release the lock for environment

        If a call made under the lock was abandoned after a timeout and is
        still running (see ``release_after``), the lock stays held until that
        call finishes.
        """
        info = None
        with self._guard:
            pending = self._pending.pop(environment, None)
            if pending is not None and pending.done():
                pending = None
            if pending is None:
                info = self._held.pop(environment, None)
                lock_fd = self._fds.pop(environment, None)
                if lock_fd is not None:
                    os.ftruncate(lock_fd, 0)
                    release_lock_fd(lock_fd)

        if pending is not None:
            logger.warning("%s stays locked until its abandoned call finishes", environment)
            pending.add_done_callback(lambda _: self.release(environment))
        elif info:
            logger.debug("Released %s held by %s", environment, info.holder)

    def release_after(self, environment: str, future: Future) -> None:
        """Keep environment locked past release() until future has finished"""
        with self._guard:
            if environment in self._held:
                self._pending[environment] = future

    @contextmanager
    def hold(self, environment: str, holder: str) -> Iterator[LockInfo]:
        """Hold the environment lock for the duration of the block"""
        info = self.acquire(environment, holder)
        try:
            yield info
        finally:
            self.release(environment)

    def holder(self, environment: str) -> Optional[LockInfo]:
        """Current holder, or None when the environment is free

        Read from the holder record in the lock file without touching the
        file lock, so polling never gets in the way of an ``acquire``.
        """
        with self._guard:
            if environment in self._held:
                return self._held[environment]

        info = self._read_info(environment)
        if info is None or not _process_alive(info.pid):
            return None
        return info

    def _read_info(self, environment: str) -> Optional[LockInfo]:
        try:
            raw = self._lock_path(environment).read_text(encoding='utf-8')
            data = json.loads(raw) if raw.strip() else None
        except (OSError, ValueError):
            return None
        if not data:
            return None
        try:
            return LockInfo(**data)
        except TypeError:
            return None


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # exists, owned by another user
        return True
    return True
