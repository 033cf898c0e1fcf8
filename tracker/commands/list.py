"""
ft list - List features.
"""

from tracker.lib.config import TrackerConfig, get_current_feature
from tracker.workflow.engine import Tracker


def cmd_list(args, tracker: Tracker, config: TrackerConfig) -> int:
    """List all features with status and progress."""
    summaries = tracker.list_features()
    current = get_current_feature(config)

    if not summaries:
        print("Features: none")
        print()
        print("Get started:")
        print("  ft new \"<title>\"  - Create a feature")
        return 0

    print("Features")
    print("-" * 60)
    for s in summaries:
        marker = "*" if s.id == current else " "
        title = s.title[:30] + "..." if len(s.title) > 30 else s.title
        print(f" {marker}{s.id:<36} {s.status.value:<14} {s.progress:>3}%  {title}")
    print()
    print(f"{len(summaries)} feature(s)")
    return 0
