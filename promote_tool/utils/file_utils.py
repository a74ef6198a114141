# promote_tool/utils/file_utils.py
"""File operation utilities"""

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Union


def ensure_parent_dir(file_path: Path) -> Path:
    """
    Ensure parent directory exists

    Args:
        file_path: File path

    Returns:
        File path
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


def atomic_write(file_path: Path,
                 content: Union[str, bytes],
                 mode: str = 'w') -> None:
    """
    Write file atomically

    Readers see either the previous content or the new content, never a
    partially written file.

    Args:
        file_path: Target file path
        content: Content to write
        mode: Write mode
    """
    ensure_parent_dir(file_path)
    temp_fd, temp_path = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.")

    try:
        with os.fdopen(temp_fd, mode) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, file_path)

    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def atomic_write_json(file_path: Path, data: Any) -> None:
    """Serialize data as indented JSON and write it atomically"""
    atomic_write(file_path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(file_path: Path) -> Optional[Any]:
    """Load JSON from file, None if the file does not exist"""
    if not file_path.exists():
        return None
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


@contextmanager
def file_lock(lock_path: Path, shared: bool = False) -> Iterator[None]:
    """Blocking advisory lock on a sidecar file.

    Uses fcntl.flock so the lock is released by the OS if the process dies.

    Args:
        lock_path: Lock file path (created if missing)
        shared: Take a shared (read) lock instead of an exclusive one
    """
    ensure_parent_dir(lock_path)
    lock_fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o644)
    try:
        fcntl.flock(lock_fd, fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
        yield
    finally:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
        os.close(lock_fd)


def try_lock_fd(lock_path: Path) -> Optional[int]:
    """Try to take an exclusive lock without waiting

    Returns:
        Open file descriptor holding the lock, or None if it is held elsewhere
    """
    ensure_parent_dir(lock_path)
    lock_fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o644)
    try:
        fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        os.close(lock_fd)
        return None
    except BaseException:
        os.close(lock_fd)
        raise
    return lock_fd


def release_lock_fd(lock_fd: int) -> None:
    """Release and close a descriptor returned by try_lock_fd"""
    try:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
    finally:
        os.close(lock_fd)
