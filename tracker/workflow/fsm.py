"""Task and feature lifecycles using the transitions library.

Each lifecycle wraps one in-memory Task or Feature. Triggers are the only
way to move between states; a successful trigger writes the new status back
onto the wrapped entity and reports a TransitionEvent.

Usage:
    from tracker.workflow.fsm import TaskLifecycle

    fsm = TaskLifecycle(task, feature_id)
    fsm.plan()      # defined -> planned
    fsm.start()     # planned -> in_progress
    fsm.complete()  # in_progress -> completed
"""

import logging
from typing import Callable

from transitions import Machine

from tracker.models import FeatureStatus, TaskStatus, TransitionEvent

logger = logging.getLogger(__name__)


TASK_STATES = [s.value for s in TaskStatus]

# Strictly forward, one step at a time
TASK_TRANSITIONS = [
    {"trigger": "plan", "source": "defined", "dest": "planned"},
    {"trigger": "start", "source": "planned", "dest": "in_progress"},
    {"trigger": "complete", "source": "in_progress", "dest": "completed"},
]

FEATURE_STATES = [s.value for s in FeatureStatus]

FEATURE_TRANSITIONS = [
    {"trigger": "record_prd", "source": "created", "dest": "prd_created"},
    {"trigger": "create_tasks", "source": "prd_created", "dest": "tasks_created"},
    # Entered automatically when the first task leaves defined
    {"trigger": "start", "source": "tasks_created", "dest": "in_progress"},
    # Entered automatically when every task is completed
    {"trigger": "complete", "source": "in_progress", "dest": "completed"},
]


def _build_trigger_lookup(transitions: list[dict]) -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in transitions:
        key = (t["source"], t["dest"])
        if key not in lookup:  # First trigger wins for a given source->dest
            lookup[key] = t["trigger"]
    return lookup


TASK_TRIGGER_FOR = _build_trigger_lookup(TASK_TRANSITIONS)
FEATURE_TRIGGER_FOR = _build_trigger_lookup(FEATURE_TRANSITIONS)


class _Lifecycle:
    """State machine bound to one entity's status field."""

    ENTITY = ""
    STATES: list[str] = []
    TRANSITIONS: list[dict] = []
    STATUS_ENUM = None

    def __init__(
        self,
        subject,
        feature_id: str,
        on_transition: Callable[[TransitionEvent], None] | None = None,
    ):
        """
        Args:
            subject: Task or Feature whose status this machine drives
            feature_id: Owning feature, for events and logs
            on_transition: Optional callback receiving a TransitionEvent
        """
        self.subject = subject
        self.feature_id = feature_id
        self.on_transition = on_transition

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=subject.status.value,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    @property
    def label(self) -> str:
        if self.ENTITY == "feature":
            return self.feature_id
        return f"{self.feature_id}/{self.subject.id}"

    def on_state_change(self, event) -> None:
        """Write the new status onto the entity and report the change."""
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        self.subject.status = self.STATUS_ENUM(to_state)
        logger.info(f"[FSM] {self.ENTITY} {self.label}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(TransitionEvent(
                feature_id=self.feature_id,
                entity=self.ENTITY,
                entity_id=self.subject.id,
                old_status=from_state,
                new_status=to_state,
            ))

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        """Get list of triggers available in current state."""
        return self.machine.get_triggers(self.state)


class TaskLifecycle(_Lifecycle):
    """defined -> planned -> in_progress -> completed."""

    ENTITY = "task"
    STATES = TASK_STATES
    TRANSITIONS = TASK_TRANSITIONS
    STATUS_ENUM = TaskStatus


class FeatureLifecycle(_Lifecycle):
    """created -> prd_created -> tasks_created -> in_progress -> completed."""

    ENTITY = "feature"
    STATES = FEATURE_STATES
    TRANSITIONS = FEATURE_TRANSITIONS
    STATUS_ENUM = FeatureStatus
