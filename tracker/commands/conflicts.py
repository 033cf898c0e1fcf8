"""
ft conflicts - Check resource overlap between open tasks across features.
"""

from tracker.lib.config import TrackerConfig
from tracker.workflow.engine import Tracker


def cmd_conflicts(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Report resource conflicts; exit 1 when any are found."""
    feature_id = None if args.all else args.id
    conflicts = tracker.conflicts(feature_id)

    scope = "all features" if feature_id is None else feature_id
    print(f"Conflict check for: {scope}")
    print()

    if not conflicts:
        print("No conflicts.")
        return 0

    print(f"CONFLICTS FOUND on {len(conflicts)} resource(s):\n")
    for conflict in conflicts:
        print(f"  {conflict.resource}:")
        for claim in conflict.claimants:
            print(f"    - {claim.feature_id}/{claim.task_id}")
        print()

    print("Declare a dependency between the tasks to serialize them, or split the work.")
    return 1
