"""
Persistence for feature records.

One JSON file per feature, written atomically, with per-feature flock
serialization of writers.
"""

from tracker.store.locking import LockTimeout, feature_lock, is_locked
from tracker.store.records import RecordStore

__all__ = [
    "RecordStore",
    "LockTimeout",
    "feature_lock",
    "is_locked",
]
