"""Next-action recommendation for a feature.

Pure function of the feature record: which task to advance next and which
command applies to it. Before tasks exist the recommendation is a pass-through
to the document generator for the next missing artifact.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tracker.models import Feature, FeatureStatus, TaskStatus
from tracker.workflow.graph import DependencyGraph


class ActionKind(Enum):
    GENERATE_PRD = "prd"
    GENERATE_TASKS = "tasks"
    PLAN = "plan"
    CODE = "code"
    COMPLETE = "complete"


# Command recommended for the selected task's current status
COMMAND_FOR_STATUS = {
    TaskStatus.DEFINED: ActionKind.PLAN,
    TaskStatus.PLANNED: ActionKind.CODE,
    TaskStatus.IN_PROGRESS: ActionKind.CODE,
}


@dataclass
class NextAction:
    kind: ActionKind
    feature_id: str
    task_id: Optional[str] = None
    reason: str = ""

    @property
    def command(self) -> str:
        return self.kind.value

    def describe(self) -> str:
        if self.kind == ActionKind.COMPLETE:
            return "feature complete"
        if self.task_id:
            return f"{self.command} {self.feature_id} {self.task_id}"
        return f"{self.command} {self.feature_id}"


def resolve_next_action(feature: Feature) -> NextAction:
    """Recommend the next command for a feature. Never mutates it."""
    if feature.status == FeatureStatus.CREATED:
        return NextAction(ActionKind.GENERATE_PRD, feature.id, reason="PRD not created yet")
    if feature.status == FeatureStatus.PRD_CREATED:
        return NextAction(ActionKind.GENERATE_TASKS, feature.id, reason="tasks not created yet")

    graph = DependencyGraph(feature.tasks)
    for task_id in graph.topological_order():
        task = graph.tasks[task_id]
        if task.status == TaskStatus.COMPLETED:
            continue
        return NextAction(
            COMMAND_FOR_STATUS[task.status],
            feature.id,
            task_id=task.id,
            reason=f"task {task.id} ({task.title}) is {task.status.value}",
        )

    return NextAction(ActionKind.COMPLETE, feature.id, reason="all tasks completed")
