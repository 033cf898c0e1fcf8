"""
Lock management for the record store.

Uses flock for per-feature writer serialization. Readers never lock;
records are replaced atomically so a reader always sees a whole file.
"""

import atexit
import fcntl
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_POLL_INTERVAL = 0.05


class LockTimeout(Exception):
    """Lock acquisition timed out."""
    pass


def lock_path(store_dir: Path, feature_id: str) -> Path:
    """Path of the advisory lock file for a feature."""
    return store_dir / ".locks" / f"{feature_id}.lock"


def is_locked(store_dir: Path, feature_id: str) -> bool:
    """Check whether another writer currently holds the feature lock."""
    path = lock_path(store_dir, feature_id)
    if not path.exists():
        return False

    with open(path, 'r') as fd:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return True
        fcntl.flock(fd, fcntl.LOCK_UN)
    return False


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str):
    """
    Internal helper to acquire a file lock.

    Lock files are never deleted: removing one lets two processes hold
    "exclusive" locks on different inodes at the same path.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
        lock_name: Human-readable name for error messages
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    fd = open(lock_file, 'w')
    start = time.monotonic()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.monotonic() - start > timeout:
                fd.close()
                raise LockTimeout(f"Could not acquire {lock_name} within {timeout}s")
            time.sleep(LOCK_POLL_INTERVAL)

    def cleanup():
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
            fd.close()
        except (OSError, ValueError):
            pass

    atexit.register(cleanup)
    logger.debug(f"[LOCK] acquired {lock_name}")

    try:
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        atexit.unregister(cleanup)
        cleanup()
        logger.debug(f"[LOCK] released {lock_name}")


@contextmanager
def feature_lock(store_dir: Path, feature_id: str, timeout: float = 30):
    """
    Acquire per-feature writer lock, yield, release on exit.

    Writers of different features never contend.
    """
    with _acquire_lock(lock_path(store_dir, feature_id), timeout, f"lock for {feature_id}"):
        yield
