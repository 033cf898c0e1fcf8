"""Cross-feature resource conflict detection.

Compares the resource footprints (file paths) of open tasks across every
feature. Two claims on the same path conflict unless both tasks belong to
the same feature and one transitively depends on the other: a declared
dependency already serializes the work.

Pure and read-only; works on whatever snapshot it is handed, including one
with dangling or cyclic dependencies.
"""

import posixpath
from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable

from tracker.models import Feature, FeatureStatus, TaskStatus, task_id_key
from tracker.workflow.graph import DependencyGraph


@dataclass(frozen=True, order=True)
class Claim:
    """A task declaring that it will create or modify a resource."""
    feature_id: str
    task_id: str


@dataclass
class ConflictRecord:
    """A resource claimed by tasks not ordered by any dependency."""
    resource: str
    claimants: list[Claim] = field(default_factory=list)

    def involves(self, feature_id: str) -> bool:
        return any(c.feature_id == feature_id for c in self.claimants)


def normalize_resource(path: str) -> str:
    """Canonical form of a footprint path ("./app//x.py" -> "app/x.py")."""
    path = path.strip().replace("\\", "/")
    normalized = posixpath.normpath(path)
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def clean_footprint(paths: Iterable[str]) -> list[str]:
    """Normalized, de-duplicated footprint; blank entries are dropped.

    An empty result stays an empty list: the task was planned and touches
    nothing, unlike a task with no footprint recorded yet (None).
    """
    cleaned = (normalize_resource(p) for p in paths if p.strip())
    return list(dict.fromkeys(cleaned))


def _claim_key(claim: Claim) -> tuple:
    return (claim.feature_id, task_id_key(claim.task_id))


def collect_claims(features: Iterable[Feature]) -> tuple[dict[str, list[Claim]], dict[str, DependencyGraph]]:
    """Map each resource to the open tasks claiming it.

    Completed features and completed tasks are ignored, as are tasks with
    no footprint.
    """
    claims: dict[str, list[Claim]] = {}
    graphs: dict[str, DependencyGraph] = {}

    for feature in features:
        if feature.status == FeatureStatus.COMPLETED:
            continue
        graphs[feature.id] = DependencyGraph(feature.tasks)
        for task in feature.tasks:
            if task.status == TaskStatus.COMPLETED or not task.resource_footprint:
                continue
            claim = Claim(feature.id, task.id)
            for resource in clean_footprint(task.resource_footprint):
                claims.setdefault(resource, []).append(claim)

    return claims, graphs


def _unordered(a: Claim, b: Claim, graphs: dict[str, DependencyGraph]) -> bool:
    if a.feature_id != b.feature_id:
        return True
    return not graphs[a.feature_id].is_ordered(a.task_id, b.task_id)


def detect_conflicts(features: Iterable[Feature]) -> list[ConflictRecord]:
    """Report every resource claimed by at least one unordered pair of tasks.

    Each record lists the claims that take part in such a pair, sorted by
    feature and task id. Records are sorted by resource.
    """
    claims, graphs = collect_claims(features)

    conflicts = []
    for resource in sorted(claims):
        claimants = claims[resource]
        if len(claimants) < 2:
            continue

        involved: set[Claim] = set()
        for a, b in combinations(claimants, 2):
            if a != b and _unordered(a, b, graphs):
                involved.update((a, b))

        if involved:
            conflicts.append(ConflictRecord(
                resource=resource,
                claimants=sorted(involved, key=_claim_key),
            ))

    return conflicts


def conflicts_for_feature(features: Iterable[Feature], feature_id: str) -> list[ConflictRecord]:
    """Conflicts with at least one claimant in the given feature."""
    return [c for c in detect_conflicts(features) if c.involves(feature_id)]
