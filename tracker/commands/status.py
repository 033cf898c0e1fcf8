"""
ft status / ft next - Show feature detail and the recommended next action.
"""

from tracker.lib.config import TrackerConfig
from tracker.models import TaskStatus
from tracker.workflow.engine import Tracker
from tracker.workflow.graph import DependencyGraph
from tracker.workflow.next_action import resolve_next_action

STATUS_MARKERS = {
    TaskStatus.DEFINED: "[ ]",
    TaskStatus.PLANNED: "[p]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.COMPLETED: "[x]",
}


def cmd_status(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Show detailed status of a feature."""
    feature = tracker.get_feature(args.id)
    action = resolve_next_action(feature)

    print(f"Feature: {feature.id}")
    print("=" * 60)
    print()
    print(f"Title:          {feature.title}")
    print(f"Status:         {feature.status.value}")
    print(f"Phase:          {feature.current_phase.value}")
    print(f"Progress:       {feature.progress}%")
    print(f"Created:        {feature.created_at}")
    print(f"Updated:        {feature.updated_at}")
    print()

    if feature.tasks:
        graph = DependencyGraph(feature.tasks)
        done_count = sum(1 for t in feature.tasks if t.status == TaskStatus.COMPLETED)
        print(f"Tasks:          {done_count}/{len(feature.tasks)} completed")
        for task in feature.tasks:
            marker = STATUS_MARKERS[task.status]
            arrow = "  <-- NEXT" if task.id == action.task_id else ""
            blocked = ""
            if task.status != TaskStatus.COMPLETED:
                blockers = graph.blockers(task)
                if blockers:
                    blocked = f" (blocked by {', '.join(blockers)})"
            print(f"  {marker} {task.id} [p{task.priority}] {task.title}{blocked}{arrow}")
    else:
        print("Tasks:          none")

    print()
    print(f"Next:           {action.describe()}")
    return 0


def cmd_next(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Print the recommended next action."""
    action = tracker.next_action(args.id)
    print(action.describe())
    if action.reason:
        print(f"  ({action.reason})")
    return 0
