"""Shared constants for the tracker."""

# Feature ID: <YYYYMMDD>-<HHMMSS>-<slug>
FEATURE_ID_TIME_FORMAT = "%Y%m%d-%H%M%S"
MAX_SLUG_LEN = 40

# Task IDs are zero-padded sequence numbers
TASK_ID_WIDTH = 3

FEATURE_SCHEMA = "feature"
RECORD_SUFFIX = ".json"
