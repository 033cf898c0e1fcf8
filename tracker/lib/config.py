"""
Configuration loaders for the tracker.

Loads tracker settings from <root>/tracker.env and manages the
current-feature context.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import envparse

logger = logging.getLogger(__name__)

CONFIG_FILE = "tracker.env"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class TrackerConfig:
    """Tracker settings from tracker.env"""
    root: Path
    store_dir: Path                 # Feature records, one JSON file each
    lock_timeout: float             # Seconds to wait for a feature's writer lock
    changelog_file: Optional[Path]  # None disables the changelog sink
    notify: bool                    # Desktop notification on feature completion
    log_level: str


def _resolve(root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


def load_config(root: Path) -> TrackerConfig:
    """Load tracker.env from root; a missing file yields defaults."""
    root = Path(root)
    env = envparse.load_env(root / CONFIG_FILE)

    log_level = env.get("LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        logger.warning(f"Unknown LOG_LEVEL '{log_level}', using 'INFO'")
        log_level = "INFO"

    try:
        lock_timeout = float(env.get("LOCK_TIMEOUT", "30"))
    except ValueError:
        logger.warning(f"Invalid LOCK_TIMEOUT '{env['LOCK_TIMEOUT']}', using 30")
        lock_timeout = 30.0

    changelog = env.get("CHANGELOG_FILE", "changelog.log")

    return TrackerConfig(
        root=root,
        store_dir=_resolve(root, env.get("STORE_DIR", "features")),
        lock_timeout=lock_timeout,
        changelog_file=_resolve(root, changelog) if changelog else None,
        notify=env.get("NOTIFY", "false").lower() == "true",
        log_level=log_level,
    )


def get_current_feature(config: TrackerConfig) -> str | None:
    """Get the current feature ID from context, or None if not set.

    Auto-clears stale context if the feature no longer exists.
    """
    context_file = config.root / "config" / "current_feature"
    if context_file.exists():
        feature_id = context_file.read_text().strip()
        if feature_id:
            if (config.store_dir / f"{feature_id}.json").exists():
                return feature_id
            # Stale context - clean it up
            context_file.unlink()
    return None


def set_current_feature(config: TrackerConfig, feature_id: str) -> None:
    """Set the current feature context."""
    config_dir = config.root / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "current_feature").write_text(feature_id + "\n")


def clear_current_feature(config: TrackerConfig) -> None:
    """Clear the current feature context."""
    context_file = config.root / "config" / "current_feature"
    if context_file.exists():
        context_file.unlink()
