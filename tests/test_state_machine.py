"""Tests for tracker.workflow.state_machine module.

Tests the enum-based wrappers around the lifecycles.
The lifecycles themselves are tested in test_fsm.py.
"""

import pytest

from tracker.lib.errors import IllegalTransitionError
from tracker.models import Feature, FeatureStatus, Task, TaskStatus
from tracker.workflow.state_machine import (
    can_transition_feature,
    can_transition_task,
    next_task_status,
    parse_feature_status,
    parse_task_status,
    transition_feature,
    transition_task,
)

FEATURE_ID = "20260101-120000-login"


def make_task(status=TaskStatus.DEFINED):
    return Task(id="001", slug="form", title="Form", status=status)


class TestParse:
    """Tests for parse_task_status() and parse_feature_status()."""

    def test_parse_valid(self):
        assert parse_task_status("in_progress") == TaskStatus.IN_PROGRESS
        assert parse_feature_status("prd_created") == FeatureStatus.PRD_CREATED

    def test_parse_none_and_unknown(self):
        assert parse_task_status(None) is None
        assert parse_task_status("done") is None
        assert parse_feature_status("") is None


class TestNextTaskStatus:
    """Tests for next_task_status()."""

    def test_successors(self):
        assert next_task_status(TaskStatus.DEFINED) == TaskStatus.PLANNED
        assert next_task_status(TaskStatus.PLANNED) == TaskStatus.IN_PROGRESS
        assert next_task_status(TaskStatus.IN_PROGRESS) == TaskStatus.COMPLETED

    def test_completed_has_none(self):
        assert next_task_status(TaskStatus.COMPLETED) is None


class TestTransitionTask:
    """Tests for transition_task()."""

    def test_valid_transition_returns_event(self):
        task = make_task()
        event = transition_task(task, TaskStatus.PLANNED, feature_id=FEATURE_ID)

        assert task.status == TaskStatus.PLANNED
        assert event.old_status == "defined"
        assert event.new_status == "planned"
        assert event.feature_id == FEATURE_ID

    def test_defined_to_completed_is_illegal(self):
        task = make_task()
        with pytest.raises(IllegalTransitionError) as exc_info:
            transition_task(task, TaskStatus.COMPLETED)

        assert exc_info.value.current == "defined"
        assert exc_info.value.attempted == "completed"
        assert task.status == TaskStatus.DEFINED

    def test_self_transition_is_illegal(self):
        with pytest.raises(IllegalTransitionError):
            transition_task(make_task(TaskStatus.PLANNED), TaskStatus.PLANNED)

    @pytest.mark.parametrize("target", list(TaskStatus))
    def test_completed_is_final(self, target):
        task = make_task(TaskStatus.COMPLETED)
        with pytest.raises(IllegalTransitionError):
            transition_task(task, target)
        assert task.status == TaskStatus.COMPLETED

    def test_callback_receives_event(self):
        seen = []
        transition_task(make_task(), TaskStatus.PLANNED, on_transition=seen.append)
        assert [e.new_status for e in seen] == ["planned"]

    def test_can_transition_task(self):
        task = make_task(TaskStatus.PLANNED)
        assert can_transition_task(task, TaskStatus.IN_PROGRESS) is True
        assert can_transition_task(task, TaskStatus.DEFINED) is False


class TestTransitionFeature:
    """Tests for transition_feature()."""

    def test_valid_transition(self):
        feature = Feature(id=FEATURE_ID, title="Login")
        event = transition_feature(feature, FeatureStatus.PRD_CREATED)
        assert feature.status == FeatureStatus.PRD_CREATED
        assert event.entity == "feature"
        assert event.entity_id == FEATURE_ID

    def test_skip_is_illegal(self):
        feature = Feature(id=FEATURE_ID, title="Login")
        with pytest.raises(IllegalTransitionError) as exc_info:
            transition_feature(feature, FeatureStatus.IN_PROGRESS)
        assert exc_info.value.entity == "feature"
        assert FEATURE_ID in str(exc_info.value)

    def test_can_transition_feature(self):
        feature = Feature(id=FEATURE_ID, title="Login", status=FeatureStatus.IN_PROGRESS)
        assert can_transition_feature(feature, FeatureStatus.COMPLETED) is True
        assert can_transition_feature(feature, FeatureStatus.CREATED) is False


class TestIllegalTransitionError:
    """Tests for IllegalTransitionError."""

    def test_exception_message(self):
        exc = IllegalTransitionError("task", "003", "defined", "completed")
        assert "defined -> completed" in str(exc)
        assert "task 003" in str(exc)
        assert exc.invariant
