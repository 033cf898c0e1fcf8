"""
Record store for features.

Features are stored one JSON file per record in:
  <store_dir>/<feature_id>.json

Writes go to a temp file in the same directory and are renamed over the
record, so a failed write leaves the previous record intact.
"""

import json
import logging
import os
import tempfile
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator

from tracker.lib.constants import FEATURE_SCHEMA, RECORD_SUFFIX
from tracker.lib.errors import NotFoundError, StoreIOError
from tracker.lib.suggest import find_similar
from tracker.lib.validate import ValidationError, validate, validate_before_write
from tracker.models import Feature, FeatureStatus, FeatureSummary, utc_now
from tracker.store.locking import LockTimeout, feature_lock

logger = logging.getLogger(__name__)


class RecordStore:
    """File-per-feature store with atomic saves and per-feature writer locks."""

    def __init__(self, store_dir: Path, lock_timeout: float = 30):
        self.store_dir = Path(store_dir)
        self.lock_timeout = lock_timeout

    def path_for(self, feature_id: str) -> Path:
        return self.store_dir / f"{feature_id}{RECORD_SUFFIX}"

    def exists(self, feature_id: str) -> bool:
        return self.path_for(feature_id).exists()

    def ids(self) -> list[str]:
        """All stored feature IDs, sorted."""
        if not self.store_dir.exists():
            return []
        return sorted(p.stem for p in self.store_dir.glob(f"*{RECORD_SUFFIX}"))

    def _read(self, feature_id: str) -> dict:
        path = self.path_for(feature_id)
        if not path.exists():
            raise NotFoundError("feature", feature_id, find_similar(feature_id, self.ids()))

        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValidationError(FEATURE_SCHEMA, f"Invalid JSON in {path}: {e}") from None
        except OSError as e:
            raise StoreIOError(feature_id, f"read failed: {e}") from e

        validate(data, FEATURE_SCHEMA)
        return data

    def load(self, feature_id: str) -> Feature:
        """Load a feature.

        Raises:
            NotFoundError: No record for this ID
            ValidationError: Record is malformed or holds an unknown enum value
            StoreIOError: The file could not be read
        """
        return Feature.from_dict(self._read(feature_id))

    def _write(self, feature: Feature) -> Feature:
        """Validate and atomically replace the record. Caller holds the lock."""
        path = self.path_for(feature.id)
        updated_at = utc_now()
        data = feature.to_dict()
        data["updated_at"] = updated_at
        validate_before_write(data, FEATURE_SCHEMA, path)

        tmp_name = None
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self.store_dir, prefix=f".{feature.id}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(json.dumps(data, indent=2) + "\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"[STORE] failed to save {feature.id}: {e}")
            raise StoreIOError(feature.id, f"write failed: {e}") from e

        feature.updated_at = updated_at
        logger.debug(f"[STORE] saved {feature.id} ({feature.status.value}, {feature.progress}%)")
        return feature

    @contextmanager
    def _locked(self, feature_id: str):
        """Hold the writer lock; only acquisition failures become StoreIOError."""
        with ExitStack() as stack:
            try:
                stack.enter_context(feature_lock(self.store_dir, feature_id, self.lock_timeout))
            except LockTimeout as e:
                raise StoreIOError(feature_id, str(e)) from e
            except OSError as e:
                raise StoreIOError(feature_id, f"lock failed: {e}") from e
            yield

    def save(self, feature: Feature) -> Feature:
        """Write the full record, refreshing updated_at on success."""
        with self._locked(feature.id):
            return self._write(feature)

    def create(self, feature: Feature) -> Feature:
        """Write a new record; refuses to overwrite an existing feature."""
        with self._locked(feature.id):
            if self.exists(feature.id):
                raise StoreIOError(feature.id, "feature already exists")
            if not feature.created_at:
                feature.created_at = utc_now()
            return self._write(feature)

    @contextmanager
    def update(self, feature_id: str) -> Iterator[Feature]:
        """Load, yield for mutation, save; all under the writer lock.

        If the block raises, nothing is written.
        """
        with self._locked(feature_id):
            feature = self.load(feature_id)
            yield feature
            self._write(feature)

    def load_all(self) -> list[Feature]:
        """Best-effort snapshot of every feature; unreadable records are skipped."""
        features = []
        for feature_id in self.ids():
            try:
                features.append(self.load(feature_id))
            except (NotFoundError, ValidationError, StoreIOError) as e:
                logger.warning(f"[STORE] skipping {feature_id} in snapshot: {e}")
        return features

    # Defined last: the method name shadows the builtin inside the class body
    def list(self) -> list[FeatureSummary]:
        """Summaries of all stored features, sorted by ID."""
        summaries = []
        for feature_id in self.ids():
            try:
                data = json.loads(self.path_for(feature_id).read_text())
                summaries.append(FeatureSummary(
                    id=data["id"],
                    title=data["title"],
                    status=FeatureStatus(data["status"]),
                    progress=data["progress"],
                ))
            except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
                logger.warning(f"[STORE] skipping unreadable record {feature_id}: {e}")
        return summaries
