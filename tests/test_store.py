"""Tests for tracker.store.records module."""

import json
from unittest.mock import patch

import pytest

from tracker.lib.errors import NotFoundError, StoreIOError
from tracker.lib.validate import ValidationError
from tracker.models import Feature, FeatureStatus, Phase, Task, TaskStatus
from tracker.store import RecordStore, feature_lock, is_locked

FEATURE_ID = "20260101-120000-login"


def make_feature(feature_id=FEATURE_ID, **kwargs):
    return Feature(id=feature_id, title="Login", created_at="2026-01-01T12:00:00+00:00", **kwargs)


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "features", lock_timeout=0.2)


class TestCreateAndLoad:
    """Tests for create() and load()."""

    def test_round_trip(self, store):
        feature = make_feature(tasks=[Task(id="001", slug="a", title="A", resource_footprint=["a.py"])])
        store.create(feature)

        loaded = store.load(FEATURE_ID)
        assert loaded.title == "Login"
        assert loaded.status == FeatureStatus.CREATED
        assert loaded.current_phase == Phase.INITIAL
        assert loaded.tasks[0].resource_footprint == ["a.py"]
        assert loaded.updated_at == feature.updated_at

    def test_file_layout(self, store):
        store.create(make_feature())
        data = json.loads(store.path_for(FEATURE_ID).read_text())
        assert data["id"] == FEATURE_ID
        assert data["tasks"] == []

    def test_create_refuses_existing(self, store):
        store.create(make_feature())
        with pytest.raises(StoreIOError, match="already exists"):
            store.create(make_feature())

    def test_missing_feature(self, store):
        with pytest.raises(NotFoundError) as exc:
            store.load(FEATURE_ID)
        assert exc.value.kind == "feature"

    def test_missing_feature_suggests_close_id(self, store):
        store.create(make_feature())
        with pytest.raises(NotFoundError) as exc:
            store.load("20260101-120000-logn")
        assert exc.value.suggestion == FEATURE_ID

    def test_invalid_json(self, store):
        store.store_dir.mkdir(parents=True)
        store.path_for(FEATURE_ID).write_text("{not json")
        with pytest.raises(ValidationError, match="Invalid JSON"):
            store.load(FEATURE_ID)

    def test_unknown_status_rejected(self, store):
        store.create(make_feature())
        path = store.path_for(FEATURE_ID)
        data = json.loads(path.read_text())
        data["status"] = "archived"
        path.write_text(json.dumps(data))

        with pytest.raises(ValidationError):
            store.load(FEATURE_ID)

    def test_no_temp_files_left(self, store):
        store.create(make_feature())
        assert [p.name for p in store.store_dir.iterdir() if p.is_file()] == [f"{FEATURE_ID}.json"]


class TestSave:
    """Tests for save() atomicity."""

    def test_refreshes_updated_at(self, store):
        feature = make_feature()
        store.create(feature)
        feature.updated_at = "stale"

        store.save(feature)
        assert feature.updated_at != "stale"
        assert store.load(FEATURE_ID).updated_at == feature.updated_at

    def test_failed_replace_keeps_previous_record(self, store):
        feature = make_feature()
        store.create(feature)
        previous = store.path_for(FEATURE_ID).read_text()
        feature.title = "Changed"
        feature.updated_at = "before"

        with patch("tracker.store.records.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StoreIOError, match="disk full"):
                store.save(feature)

        assert store.path_for(FEATURE_ID).read_text() == previous
        assert feature.updated_at == "before"
        assert not list(store.store_dir.glob("*.tmp"))

    def test_invalid_record_not_written(self, store):
        feature = make_feature()
        store.create(feature)
        feature.progress = 150

        with pytest.raises(ValidationError, match="Refusing to write"):
            store.save(feature)
        assert store.load(FEATURE_ID).progress == 0


class TestUpdate:
    """Tests for the update() context manager."""

    def test_changes_saved(self, store):
        store.create(make_feature())
        with store.update(FEATURE_ID) as feature:
            feature.status = FeatureStatus.PRD_CREATED
        assert store.load(FEATURE_ID).status == FeatureStatus.PRD_CREATED

    def test_exception_discards_changes(self, store):
        store.create(make_feature())
        with pytest.raises(RuntimeError):
            with store.update(FEATURE_ID) as feature:
                feature.title = "Changed"
                raise RuntimeError("boom")
        assert store.load(FEATURE_ID).title == "Login"

    def test_error_inside_block_not_reported_as_lock_failure(self, store):
        store.create(make_feature())
        with pytest.raises(FileNotFoundError):
            with store.update(FEATURE_ID):
                raise FileNotFoundError("plan.md")
        assert not is_locked(store.store_dir, FEATURE_ID)

    def test_lock_dir_unwritable(self, store):
        store.create(make_feature())
        with patch("tracker.store.records.feature_lock", side_effect=PermissionError("denied")):
            with pytest.raises(StoreIOError, match="lock failed: denied"):
                with store.update(FEATURE_ID):
                    pass

    def test_lock_timeout(self, store):
        store.create(make_feature())
        with feature_lock(store.store_dir, FEATURE_ID):
            with pytest.raises(StoreIOError, match="Could not acquire"):
                with store.update(FEATURE_ID):
                    pass

    def test_other_feature_not_blocked(self, store):
        other = "20260102-120000-profile"
        store.create(make_feature())
        store.create(make_feature(other))
        with feature_lock(store.store_dir, FEATURE_ID):
            with store.update(other) as feature:
                feature.title = "Profile"
        assert store.load(other).title == "Profile"


class TestListing:
    """Tests for ids(), list() and load_all()."""

    def test_empty_store(self, store):
        assert store.ids() == []
        assert store.list() == []
        assert store.load_all() == []

    def test_sorted_by_id(self, store):
        store.create(make_feature("20260102-120000-b"))
        store.create(make_feature("20260101-120000-a"))
        assert [s.id for s in store.list()] == ["20260101-120000-a", "20260102-120000-b"]

    def test_summary_fields(self, store):
        store.create(make_feature(status=FeatureStatus.IN_PROGRESS, progress=50))
        summary = store.list()[0]
        assert (summary.status, summary.progress) == (FeatureStatus.IN_PROGRESS, 50)

    def test_garbage_skipped(self, store, caplog):
        store.create(make_feature())
        (store.store_dir / "junk.json").write_text("nope")

        assert [s.id for s in store.list()] == [FEATURE_ID]
        assert [f.id for f in store.load_all()] == [FEATURE_ID]
        assert "junk" in caplog.text

    def test_lock_files_not_listed(self, store):
        store.create(make_feature())
        assert (store.store_dir / ".locks").exists()
        assert store.ids() == [FEATURE_ID]

    def test_load_all_returns_tasks(self, store):
        task = Task(id="001", slug="a", title="A", status=TaskStatus.PLANNED)
        store.create(make_feature(tasks=[task]))
        assert store.load_all()[0].tasks[0].status == TaskStatus.PLANNED
