"""Derived feature progress and the automatic feature transitions it drives."""

import logging

from tracker.models import (
    Feature,
    FeatureStatus,
    Phase,
    Task,
    TaskStatus,
    TransitionEvent,
    feature_status_rank,
)
from tracker.workflow.state_machine import transition_feature

logger = logging.getLogger(__name__)


def compute_progress(tasks: list[Task]) -> int:
    """floor(100 * completed / total); 0 for no tasks."""
    if not tasks:
        return 0
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return (100 * completed) // len(tasks)


def recompute(feature: Feature) -> list[TransitionEvent]:
    """Refresh progress and advance the feature status to match its tasks.

    Once tasks exist (status at least tasks_created) the feature enters
    in_progress as soon as any task has left defined, and completed when
    every task is completed. Status never moves backward. Idempotent.

    Returns:
        TransitionEvents for any feature status changes made
    """
    events: list[TransitionEvent] = []
    feature.progress = compute_progress(feature.tasks)

    if not feature.tasks:
        return events
    if feature_status_rank(feature.status) < feature_status_rank(FeatureStatus.TASKS_CREATED):
        return events

    all_done = all(t.status == TaskStatus.COMPLETED for t in feature.tasks)
    any_started = any(t.status != TaskStatus.DEFINED for t in feature.tasks)

    if (any_started or all_done) and feature.status == FeatureStatus.TASKS_CREATED:
        events.append(transition_feature(feature, FeatureStatus.IN_PROGRESS))

    if all_done and feature.status == FeatureStatus.IN_PROGRESS:
        events.append(transition_feature(feature, FeatureStatus.COMPLETED))

    if feature.status == FeatureStatus.COMPLETED and feature.current_phase != Phase.DONE:
        feature.current_phase = Phase.DONE

    if events:
        logger.debug(f"[PROGRESS] {feature.id}: {feature.progress}% ({feature.status.value})")
    return events
