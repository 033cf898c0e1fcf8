"""
Fuzzy matching for "Did you mean?" suggestions.
"""

from difflib import SequenceMatcher
from typing import Optional


def find_similar(query: str, candidates: list[str], threshold: float = 0.6) -> Optional[str]:
    """
    Find the most similar candidate to query.

    Args:
        query: The user's input
        candidates: List of valid options
        threshold: Minimum similarity ratio (0-1) to suggest

    Returns:
        Best match if above threshold, None otherwise
    """
    if not candidates:
        return None

    best_match = None
    best_ratio = 0.0

    query_lower = query.lower()

    for candidate in candidates:
        ratio = SequenceMatcher(None, query_lower, candidate.lower()).ratio()
        if ratio > best_ratio:
            best_ratio = ratio
            best_match = candidate

    if best_ratio >= threshold:
        return best_match

    return None


def suggest_task(query: str, task_ids: list[str]) -> Optional[str]:
    """Suggest a task ID, accepting unpadded input like "2" for "002"."""
    if query.isdigit():
        for task_id in task_ids:
            if task_id.isdigit() and int(task_id) == int(query):
                return task_id
    return find_similar(query, task_ids)
