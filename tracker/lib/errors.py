"""
Error taxonomy for the tracker.

Every rejected operation raises a subclass of TrackerError carrying
structured attributes, so callers can correct input instead of retrying.
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""

    # Human-readable rule the error reports
    invariant = ""


class NotFoundError(TrackerError):
    """Referenced Feature or Task does not exist."""

    invariant = "referenced entities must exist"

    def __init__(self, kind: str, ident: str, suggestion: str | None = None):
        self.kind = kind
        self.ident = ident
        self.suggestion = suggestion
        message = f"{kind} '{ident}' not found"
        if suggestion:
            message += f" (did you mean '{suggestion}'?)"
        super().__init__(message)


class IllegalTransitionError(TrackerError):
    """Requested status change is not adjacent in the pipeline."""

    invariant = "status moves one step forward at a time"

    def __init__(self, entity: str, entity_id: str, current: str, attempted: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Illegal {entity} transition: {current} -> {attempted}"
            + (f" ({entity} {entity_id})" if entity_id else "")
        )


class CycleError(TrackerError):
    """Task dependencies form a cycle."""

    invariant = "task dependencies must be acyclic"

    def __init__(self, path: list[str]):
        self.path = list(path)
        loop = " -> ".join(self.path + self.path[:1])
        super().__init__(f"Dependency cycle: {loop}")


class DanglingDependencyError(TrackerError):
    """depends_on references a task id that is not in the feature."""

    invariant = "dependencies must reference tasks in the same feature"

    def __init__(self, task_id: str, missing: list[str]):
        self.task_id = task_id
        self.missing = list(missing)
        super().__init__(
            f"Task {task_id} depends on unknown task(s): {', '.join(self.missing)}"
        )


class StoreIOError(TrackerError):
    """Persistence failed; the previous record is left intact."""

    invariant = "records are written whole or not at all"

    def __init__(self, feature_id: str, message: str):
        self.feature_id = feature_id
        super().__init__(f"Store error for feature '{feature_id}': {message}")
