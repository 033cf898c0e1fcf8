"""
Data models for the feature/task lifecycle tracker.

Features are the unit of requested functionality; each is decomposed into
ordered Tasks. Records round-trip through to_dict()/from_dict() to the
JSON shape persisted by the record store.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from tracker.lib.constants import FEATURE_ID_TIME_FORMAT, MAX_SLUG_LEN, TASK_ID_WIDTH
from tracker.lib.errors import NotFoundError
from tracker.lib.suggest import suggest_task
from tracker.lib.validate import ValidationError


class FeatureStatus(Enum):
    """Feature pipeline states, in order."""

    CREATED = "created"
    PRD_CREATED = "prd_created"
    TASKS_CREATED = "tasks_created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskStatus(Enum):
    """Task pipeline states, in order."""

    DEFINED = "defined"
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Phase(Enum):
    """Document-generation stage a feature has reached. Advisory only."""

    INITIAL = "initial"
    PRD = "prd"
    TASKS = "tasks"
    DONE = "done"


FEATURE_STATUS_ORDER = list(FeatureStatus)
TASK_STATUS_ORDER = list(TaskStatus)


def feature_status_rank(status: FeatureStatus) -> int:
    """Position of a feature status in the pipeline."""
    return FEATURE_STATUS_ORDER.index(status)


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def slugify(text: str, max_len: int = MAX_SLUG_LEN) -> str:
    """Lowercase, hyphen-separated slug; never empty."""
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
    slug = slug[:max_len].rstrip('-')
    return slug or "feature"


def generate_feature_id(title: str, now: Optional[datetime] = None) -> str:
    """Build a feature ID from a timestamp and the title slug."""
    now = now or datetime.now(timezone.utc)
    return f"{now.strftime(FEATURE_ID_TIME_FORMAT)}-{slugify(title)}"


def format_task_id(number: int) -> str:
    """Zero-padded task ID for a sequence number."""
    return f"{number:0{TASK_ID_WIDTH}d}"


def task_id_key(task_id: str) -> tuple:
    """Sort key comparing task IDs numerically ("1000" after "999")."""
    if task_id.isdigit():
        return (0, int(task_id), task_id)
    return (1, 0, task_id)


def _parse_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(
            "feature", f"'{value}' is not one of [{allowed}]", field_name
        ) from None


@dataclass
class Task:
    """An atomic, independently trackable unit of work within a Feature."""
    id: str                                    # 001
    slug: str
    title: str
    status: TaskStatus = TaskStatus.DEFINED
    priority: int = 1                          # Lower runs earlier
    requisito: str = ""                        # External requirement reference
    depends_on: list[str] = field(default_factory=list)
    resource_footprint: Optional[list[str]] = None  # Set once a plan exists

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority,
            "requisito": self.requisito,
            "depends_on": list(self.depends_on),
        }
        if self.resource_footprint is not None:
            data["resource_footprint"] = list(self.resource_footprint)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        footprint = data.get("resource_footprint")
        return cls(
            id=data["id"],
            slug=data["slug"],
            title=data["title"],
            status=_parse_enum(TaskStatus, data["status"], f"tasks.{data['id']}.status"),
            priority=data["priority"],
            requisito=data.get("requisito", ""),
            depends_on=list(data.get("depends_on", [])),
            resource_footprint=list(footprint) if footprint is not None else None,
        )


@dataclass
class Feature:
    """A top-level unit of requested functionality."""
    id: str                                    # 20261018-143000-user-login
    title: str
    description: str = ""
    original_request: str = ""
    status: FeatureStatus = FeatureStatus.CREATED
    current_phase: Phase = Phase.INITIAL
    progress: int = 0                          # Derived, see workflow.progress
    tasks: list[Task] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def get_task(self, task_id: str) -> Task:
        """Return the task with this ID or raise NotFoundError."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(
            "task", f"{self.id}/{task_id}", suggest_task(task_id, [t.id for t in self.tasks])
        )

    def next_task_id(self) -> str:
        """ID for the next appended task."""
        numbers = [int(t.id) for t in self.tasks if t.id.isdigit()]
        return format_task_id(max(numbers, default=0) + 1)

    def summary(self) -> "FeatureSummary":
        return FeatureSummary(
            id=self.id,
            title=self.title,
            status=self.status,
            progress=self.progress,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "original_request": self.original_request,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "status": self.status.value,
            "progress": self.progress,
            "current_phase": self.current_phase.value,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Feature":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            original_request=data.get("original_request", ""),
            status=_parse_enum(FeatureStatus, data["status"], "status"),
            current_phase=_parse_enum(Phase, data["current_phase"], "current_phase"),
            progress=data["progress"],
            tasks=[Task.from_dict(t) for t in data.get("tasks", [])],
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class FeatureSummary:
    """Enumeration view of a feature without task detail."""
    id: str
    title: str
    status: FeatureStatus
    progress: int


@dataclass
class TransitionEvent:
    """One state change, emitted to changelog/notification sinks."""
    feature_id: str
    entity: str                                # "feature" or "task"
    entity_id: str
    old_status: str
    new_status: str
    timestamp: str = field(default_factory=utc_now)

    def summary(self) -> str:
        """One-line changelog entry."""
        subject = self.feature_id if self.entity == "feature" else f"{self.feature_id}/{self.entity_id}"
        return f"{self.timestamp} {self.entity} {subject}: {self.old_status} -> {self.new_status}"
