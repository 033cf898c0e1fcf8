"""
Changelog and notification sinks for state transitions.

A sink is any callable taking a TransitionEvent. Sinks run after the
record is persisted; a failing sink is logged and never undoes the change.

Desktop notifications go through notify-send when it is installed.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from tracker.models import TransitionEvent

logger = logging.getLogger(__name__)

Sink = Callable[[TransitionEvent], None]

NOTIFY_TIMEOUT = 5


def notify(title: str, message: str) -> bool:
    """Show a low-urgency desktop notification. Returns True if one was shown."""
    command = shutil.which("notify-send")
    if command is None:
        logger.debug("[NOTIFY] notify-send not installed")
        return False

    try:
        result = subprocess.run(
            [command, "--urgency", "low", "--app-name", "Tracker", title, message],
            capture_output=True, text=True, timeout=NOTIFY_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning(f"[NOTIFY] notify-send failed: {e}")
        return False

    if result.returncode != 0:
        logger.warning(f"[NOTIFY] notify-send exited {result.returncode}: {result.stderr.strip()}")
        return False
    return True


class LoggingSink:
    """Log each transition as a one-line summary."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def __call__(self, event: TransitionEvent) -> None:
        logger.log(self.level, f"[CHANGELOG] {event.summary()}")


class ChangelogSink:
    """Append each transition summary as one line to a changelog file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __call__(self, event: TransitionEvent) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a") as f:
            f.write(event.summary() + "\n")


class DesktopNotifier:
    """Notify when a feature is completed."""

    def __call__(self, event: TransitionEvent) -> None:
        if event.entity == "feature" and event.new_status == "completed":
            notify(f"Tracker: {event.feature_id}", "All tasks completed")


def dispatch(events: Iterable[TransitionEvent], sinks: Iterable[Sink]) -> None:
    """Deliver events to every sink; sink failures are logged, not raised."""
    sinks = list(sinks)
    for event in events:
        for sink in sinks:
            try:
                sink(event)
            except Exception as e:
                logger.warning(f"Sink {type(sink).__name__} failed for {event.summary()}: {e}")
