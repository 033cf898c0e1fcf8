"""
ft advance - Move a task one step through its pipeline.
"""

from tracker.lib.config import TrackerConfig
from tracker.workflow.engine import Tracker
from tracker.workflow.state_machine import parse_task_status


def cmd_advance(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Advance a task to its next status (or to --to, if adjacent)."""
    to_status = None
    if args.to:
        to_status = parse_task_status(args.to)
        if to_status is None:
            print(f"ERROR: Unknown task status '{args.to}'")
            print("  Valid: defined, planned, in_progress, completed")
            return 2

    before = tracker.get_feature(args.id)
    old_status = before.get_task(args.task).status.value

    feature = tracker.advance_task(args.id, args.task, to_status)
    task = feature.get_task(args.task)

    print(f"{feature.id}/{task.id}: {old_status} -> {task.status.value}")
    if feature.status != before.status:
        print(f"Feature: {before.status.value} -> {feature.status.value}")
    print(f"Progress: {feature.progress}%")
    return 0
