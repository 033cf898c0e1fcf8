"""
Parser for tracker.env.

KEY=value lines only; nothing is ever evaluated by a shell. Values that a
shell would expand are refused so the file stays safe to source.
"""

import re
from pathlib import Path

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')

# Backticks, $(...), ${...}, ;, && and pipes
SHELL_SYNTAX = re.compile(r'`|\$[({]|;|&&|\|')


def parse_env(text: str) -> dict[str, str]:
    """
    Parse KEY=value lines; blank lines and # comments are skipped.

    Raises:
        ValueError: On a malformed line, a bad key, or shell syntax in a value
    """
    env = {}
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        key, sep, value = line.partition('=')
        key, value = key.strip(), value.strip()
        if not sep:
            raise ValueError(f"Line {lineno}: expected KEY=value")
        if not KEY_PATTERN.match(key):
            raise ValueError(f"Line {lineno}: invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        if SHELL_SYNTAX.search(value):
            raise ValueError(f"Line {lineno}: shell syntax not allowed in {key}")

        env[key] = value
    return env


def load_env(filepath: Path) -> dict[str, str]:
    """Parse an env file; a missing file yields an empty dict."""
    path = Path(filepath)
    if not path.exists():
        return {}
    return parse_env(path.read_text())
