"""
ft new / ft prd - Create a feature and record its PRD.
"""

from tracker.lib.config import TrackerConfig, set_current_feature
from tracker.workflow.engine import Tracker


def cmd_new(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Create a feature and make it the current one."""
    title = args.title.strip()
    if len(title) < 3:
        print("ERROR: Title must be at least 3 characters")
        return 2

    feature = tracker.create_feature(
        title,
        description=args.description or "",
        original_request=args.request or "",
    )
    set_current_feature(config, feature.id)

    print(f"Created feature: {feature.id}")
    print(f"  Title:  {feature.title}")
    print(f"  Status: {feature.status.value}")
    print()
    print("Next: generate the PRD, then run 'ft prd'")
    return 0


def cmd_prd(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Record that the PRD for a feature exists."""
    feature = tracker.record_prd(args.id)
    print(f"{feature.id}: {feature.status.value} (phase: {feature.current_phase.value})")
    print("Next: generate the task breakdown, then run 'ft tasks add <file.json>'")
    return 0
