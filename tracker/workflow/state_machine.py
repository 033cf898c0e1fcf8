"""Status transitions for tasks and features with explicit validation.

Thin wrapper around the lifecycles in fsm.py. All transition tables live in
fsm.py; this module maps destination-based requests onto triggers and turns
rejections into IllegalTransitionError.

Usage:
    from tracker.workflow.state_machine import transition_task
    from tracker.models import TaskStatus

    event = transition_task(task, TaskStatus.PLANNED, feature_id=feature.id)
"""

import logging
from typing import Callable, Optional

from transitions import MachineError

from tracker.lib.errors import IllegalTransitionError
from tracker.models import (
    Feature,
    FeatureStatus,
    Task,
    TaskStatus,
    TASK_STATUS_ORDER,
    TransitionEvent,
)
from tracker.workflow.fsm import (
    FEATURE_TRIGGER_FOR,
    TASK_TRIGGER_FOR,
    FeatureLifecycle,
    TaskLifecycle,
)

logger = logging.getLogger(__name__)


def parse_task_status(status_str: str | None) -> TaskStatus | None:
    """Parse a status string into TaskStatus. Returns None if unknown."""
    if status_str is None:
        return None
    for status in TaskStatus:
        if status.value == status_str:
            return status
    return None


def parse_feature_status(status_str: str | None) -> FeatureStatus | None:
    """Parse a status string into FeatureStatus. Returns None if unknown."""
    if status_str is None:
        return None
    for status in FeatureStatus:
        if status.value == status_str:
            return status
    return None


def next_task_status(status: TaskStatus) -> Optional[TaskStatus]:
    """The only legal successor of a task status, or None once completed."""
    index = TASK_STATUS_ORDER.index(status)
    if index + 1 < len(TASK_STATUS_ORDER):
        return TASK_STATUS_ORDER[index + 1]
    return None


def can_transition_task(task: Task, to_status: TaskStatus) -> bool:
    return (task.status.value, to_status.value) in TASK_TRIGGER_FOR


def can_transition_feature(feature: Feature, to_status: FeatureStatus) -> bool:
    return (feature.status.value, to_status.value) in FEATURE_TRIGGER_FOR


def _fire(fsm, trigger: str, entity: str, entity_id: str, current: str, attempted: str) -> None:
    try:
        getattr(fsm, trigger)()
    except MachineError as e:
        raise IllegalTransitionError(entity, entity_id, current, attempted) from e


def transition_task(
    task: Task,
    to_status: TaskStatus,
    feature_id: str = "",
    on_transition: Callable[[TransitionEvent], None] | None = None,
) -> TransitionEvent:
    """Move a task one step forward.

    Args:
        task: Task to transition (mutated in place)
        to_status: Target status; must be the immediate successor
        feature_id: Owning feature, for events and errors
        on_transition: Optional callback also receiving the event

    Returns:
        The TransitionEvent describing the change

    Raises:
        IllegalTransitionError: Skip, regression, or self-transition
    """
    current = task.status.value
    trigger = TASK_TRIGGER_FOR.get((current, to_status.value))
    if trigger is None:
        raise IllegalTransitionError("task", task.id, current, to_status.value)

    events: list[TransitionEvent] = []

    def record(event: TransitionEvent) -> None:
        events.append(event)
        if on_transition:
            on_transition(event)

    fsm = TaskLifecycle(task, feature_id, on_transition=record)
    _fire(fsm, trigger, "task", task.id, current, to_status.value)
    return events[-1]


def transition_feature(
    feature: Feature,
    to_status: FeatureStatus,
    on_transition: Callable[[TransitionEvent], None] | None = None,
) -> TransitionEvent:
    """Move a feature one step forward.

    Raises:
        IllegalTransitionError: The move is not adjacent in the pipeline
    """
    current = feature.status.value
    trigger = FEATURE_TRIGGER_FOR.get((current, to_status.value))
    if trigger is None:
        raise IllegalTransitionError("feature", feature.id, current, to_status.value)

    events: list[TransitionEvent] = []

    def record(event: TransitionEvent) -> None:
        events.append(event)
        if on_transition:
            on_transition(event)

    fsm = FeatureLifecycle(feature, feature.id, on_transition=record)
    _fire(fsm, trigger, "feature", feature.id, current, to_status.value)
    return events[-1]
