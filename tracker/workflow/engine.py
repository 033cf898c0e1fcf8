"""Tracker service: the load/validate/mutate/save cycle for features.

Every mutation runs under the feature's writer lock:
1. Load the current record
2. Validate (transition legality, dependency references, acyclicity)
3. Apply the mutation and recompute progress
4. Save atomically
5. Dispatch transition events to the sinks

Validation failures raise before anything is written, so a rejected
operation never leaves a partially applied record behind.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from tracker.lib.errors import IllegalTransitionError
from tracker.lib.validate import ValidationError
from tracker.models import (
    Feature,
    FeatureStatus,
    FeatureSummary,
    Phase,
    Task,
    TaskStatus,
    TransitionEvent,
    format_task_id,
    generate_feature_id,
    slugify,
    utc_now,
)
from tracker.notifications import Sink, dispatch
from tracker.store.records import RecordStore
from tracker.workflow.conflicts import ConflictRecord, clean_footprint, conflicts_for_feature, detect_conflicts
from tracker.workflow.graph import DependencyGraph
from tracker.workflow.next_action import NextAction, resolve_next_action
from tracker.workflow.progress import recompute
from tracker.workflow.state_machine import next_task_status, transition_feature, transition_task

logger = logging.getLogger(__name__)

# Feature statuses that accept a task batch
TASK_BATCH_STATUSES = (
    FeatureStatus.PRD_CREATED,
    FeatureStatus.TASKS_CREATED,
    FeatureStatus.IN_PROGRESS,
)


class Tracker:
    """Feature/task lifecycle operations over a record store."""

    def __init__(self, store: RecordStore, sinks: Iterable[Sink] = ()):
        self.store = store
        self.sinks = list(sinks)

    def _emit(self, events: list[TransitionEvent]) -> None:
        dispatch(events, self.sinks)

    # --- Queries ---

    def get_feature(self, feature_id: str) -> Feature:
        return self.store.load(feature_id)

    def list_features(self) -> list[FeatureSummary]:
        return self.store.list()

    def next_action(self, feature_id: str) -> NextAction:
        return resolve_next_action(self.store.load(feature_id))

    def conflicts(self, feature_id: Optional[str] = None) -> list[ConflictRecord]:
        """Scan a best-effort snapshot of all features for resource conflicts."""
        if feature_id is not None:
            self.store.load(feature_id)  # NotFoundError for unknown IDs
        snapshot = self.store.load_all()
        if feature_id is None:
            return detect_conflicts(snapshot)
        return conflicts_for_feature(snapshot, feature_id)

    # --- Mutations ---

    def create_feature(
        self,
        title: str,
        description: str = "",
        original_request: str = "",
        now: Optional[datetime] = None,
    ) -> Feature:
        """Create a feature in status created with no tasks."""
        base_id = generate_feature_id(title, now or datetime.now(timezone.utc))
        feature_id = base_id
        suffix = 2
        while self.store.exists(feature_id):
            feature_id = f"{base_id}-{suffix}"
            suffix += 1

        timestamp = utc_now()
        feature = Feature(
            id=feature_id,
            title=title,
            description=description,
            original_request=original_request,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.store.create(feature)
        logger.info(f"[TRACKER] created feature {feature_id}")
        return feature

    def record_prd(self, feature_id: str) -> Feature:
        """Mark the PRD artifact as produced: created -> prd_created."""
        with self.store.update(feature_id) as feature:
            events = [transition_feature(feature, FeatureStatus.PRD_CREATED)]
            feature.current_phase = Phase.PRD
        self._emit(events)
        return feature

    def _build_tasks(self, feature: Feature, specs: list[dict]) -> list[Task]:
        next_number = int(feature.next_task_id())
        tasks = []
        for offset, spec in enumerate(specs):
            where = f"tasks[{offset}]"
            title = spec.get("title")
            if not isinstance(title, str) or not title.strip():
                raise ValidationError("task", "title is required", where)

            priority = spec.get("priority", len(feature.tasks) + offset + 1)
            if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
                raise ValidationError("task", f"priority must be a positive integer, got {priority!r}", where)

            depends_on = spec.get("depends_on", [])
            if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
                raise ValidationError("task", "depends_on must be a list of task ids", where)

            footprint = spec.get("resource_footprint")
            if footprint is not None and (
                not isinstance(footprint, list) or not all(isinstance(p, str) for p in footprint)
            ):
                raise ValidationError("task", "resource_footprint must be a list of paths", where)

            tasks.append(Task(
                id=format_task_id(next_number + offset),
                slug=spec.get("slug") or slugify(title),
                title=title,
                priority=priority,
                requisito=spec.get("requisito", ""),
                depends_on=list(dict.fromkeys(depends_on)),
                resource_footprint=clean_footprint(footprint) if footprint is not None else None,
            ))
        return tasks

    def add_tasks(self, feature_id: str, specs: list[dict]) -> Feature:
        """Append a batch of tasks; the first batch moves the feature to tasks_created.

        Args:
            feature_id: Feature to extend
            specs: Dicts with title and optional slug, priority, requisito,
                   depends_on, resource_footprint. IDs are assigned in order.

        Raises:
            IllegalTransitionError: Feature has no PRD yet or is completed
            ValidationError: A task entry is malformed
            DanglingDependencyError / CycleError: The batch breaks the graph
        """
        if not specs:
            raise ValidationError("task", "task batch is empty")

        with self.store.update(feature_id) as feature:
            if feature.status not in TASK_BATCH_STATUSES:
                raise IllegalTransitionError(
                    "feature", feature.id, feature.status.value, FeatureStatus.TASKS_CREATED.value
                )

            new_tasks = self._build_tasks(feature, specs)
            DependencyGraph(feature.tasks + new_tasks).validate()

            events = []
            feature.tasks.extend(new_tasks)
            if feature.status == FeatureStatus.PRD_CREATED:
                events.append(transition_feature(feature, FeatureStatus.TASKS_CREATED))
                feature.current_phase = Phase.TASKS
            events.extend(recompute(feature))

        logger.info(f"[TRACKER] {feature_id}: added {len(new_tasks)} task(s)")
        self._emit(events)
        return feature

    def advance_task(
        self,
        feature_id: str,
        task_id: str,
        to_status: Optional[TaskStatus] = None,
    ) -> Feature:
        """Move a task one step forward (to its successor when to_status is None)."""
        with self.store.update(feature_id) as feature:
            task = feature.get_task(task_id)
            target = to_status or next_task_status(task.status)
            if target is None:
                raise IllegalTransitionError("task", task.id, task.status.value, "(none)")

            events = [transition_task(task, target, feature_id=feature.id)]
            events.extend(recompute(feature))

        self._emit(events)
        return feature

    def set_dependencies(self, feature_id: str, task_id: str, depends_on: list[str]) -> Feature:
        """Replace a task's dependencies after checking references and acyclicity."""
        with self.store.update(feature_id) as feature:
            task = feature.get_task(task_id)
            edited = replace(task, depends_on=list(dict.fromkeys(depends_on)))
            candidate = [edited if t.id == task_id else t for t in feature.tasks]
            DependencyGraph(candidate).validate()
            task.depends_on = edited.depends_on

        logger.info(f"[TRACKER] {feature_id}/{task_id}: depends_on={task.depends_on}")
        return feature

    def set_footprint(self, feature_id: str, task_id: str, paths: list[str]) -> Feature:
        """Record the files a task intends to create or modify."""
        with self.store.update(feature_id) as feature:
            task = feature.get_task(task_id)
            task.resource_footprint = clean_footprint(paths)

        logger.info(f"[TRACKER] {feature_id}/{task_id}: {len(task.resource_footprint)} resource(s)")
        return feature


def build_tracker(config) -> Tracker:
    """Create a Tracker with the store and sinks described by a TrackerConfig."""
    from tracker.notifications import ChangelogSink, DesktopNotifier, LoggingSink

    sinks: list[Sink] = [LoggingSink()]
    if config.changelog_file:
        sinks.append(ChangelogSink(config.changelog_file))
    if config.notify:
        sinks.append(DesktopNotifier())
    return Tracker(RecordStore(config.store_dir, config.lock_timeout), sinks)
