"""Tests for tracker.workflow.progress module."""

import copy

import pytest

from tracker.models import Feature, FeatureStatus, Phase, Task, TaskStatus
from tracker.workflow.progress import compute_progress, recompute


def make_feature(statuses, feature_status=FeatureStatus.TASKS_CREATED):
    tasks = [
        Task(id=f"{i:03d}", slug=f"t{i}", title=f"T{i}", status=s, priority=i)
        for i, s in enumerate(statuses, 1)
    ]
    return Feature(
        id="20260101-120000-login",
        title="Login",
        status=feature_status,
        current_phase=Phase.TASKS,
        tasks=tasks,
    )


class TestComputeProgress:
    """Tests for compute_progress()."""

    def test_no_tasks_is_zero(self):
        assert compute_progress([]) == 0

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 66),
        (3, 3, 100),
        (1, 7, 14),
        (6, 7, 85),
    ])
    def test_floor_of_ratio(self, completed, total, expected):
        statuses = [TaskStatus.COMPLETED] * completed + [TaskStatus.DEFINED] * (total - completed)
        assert compute_progress(make_feature(statuses).tasks) == expected


class TestRecompute:
    """Tests for recompute()."""

    def test_all_completed_completes_feature(self):
        """4 of 4 completed: progress 100, status completed."""
        feature = make_feature([TaskStatus.COMPLETED] * 4, FeatureStatus.IN_PROGRESS)
        events = recompute(feature)

        assert feature.progress == 100
        assert feature.status == FeatureStatus.COMPLETED
        assert feature.current_phase == Phase.DONE
        assert [(e.old_status, e.new_status) for e in events] == [("in_progress", "completed")]

    def test_first_task_leaving_defined_starts_feature(self):
        feature = make_feature([TaskStatus.PLANNED, TaskStatus.DEFINED])
        events = recompute(feature)

        assert feature.progress == 0
        assert feature.status == FeatureStatus.IN_PROGRESS
        assert len(events) == 1

    def test_all_defined_stays_tasks_created(self):
        feature = make_feature([TaskStatus.DEFINED] * 3)
        assert recompute(feature) == []
        assert feature.status == FeatureStatus.TASKS_CREATED

    def test_walks_through_in_progress_to_completed(self):
        feature = make_feature([TaskStatus.COMPLETED])
        events = recompute(feature)

        assert feature.status == FeatureStatus.COMPLETED
        assert [e.new_status for e in events] == ["in_progress", "completed"]

    def test_before_tasks_created_only_progress_changes(self):
        feature = make_feature([TaskStatus.COMPLETED], FeatureStatus.PRD_CREATED)
        assert recompute(feature) == []
        assert feature.progress == 100
        assert feature.status == FeatureStatus.PRD_CREATED

    def test_never_regresses_completed(self):
        feature = make_feature([TaskStatus.COMPLETED, TaskStatus.DEFINED], FeatureStatus.COMPLETED)
        recompute(feature)
        assert feature.status == FeatureStatus.COMPLETED
        assert feature.progress == 50

    def test_empty_feature(self):
        feature = make_feature([])
        assert recompute(feature) == []
        assert feature.progress == 0

    def test_idempotent(self):
        feature = make_feature([TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, TaskStatus.DEFINED])
        recompute(feature)
        snapshot = copy.deepcopy(feature)

        assert recompute(feature) == []
        assert feature == snapshot
