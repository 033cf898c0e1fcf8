"""Task dependency graph for a single feature.

Edges run from a task to each task it depends on. The graph validates
references and acyclicity, orders tasks for execution, and answers
readiness and reachability queries.

Usage:
    from tracker.workflow.graph import DependencyGraph

    graph = DependencyGraph(feature.tasks)
    graph.validate()              # raises CycleError / DanglingDependencyError
    order = graph.topological_order()
"""

import heapq
import logging
from typing import Iterable, Optional

from tracker.lib.errors import CycleError, DanglingDependencyError
from tracker.models import Task, TaskStatus, task_id_key

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Directed graph of depends-on edges between tasks of one feature."""

    def __init__(self, tasks: Iterable[Task]):
        self.tasks: dict[str, Task] = {}
        self.edges: dict[str, list[str]] = {}
        for task in tasks:
            if task.id in self.tasks:
                logger.warning(f"[GRAPH] duplicate task id {task.id}, keeping first")
                continue
            self.tasks[task.id] = task
            # Preserve declared order, drop repeats
            self.edges[task.id] = list(dict.fromkeys(task.depends_on))

    def _sort_key(self, task_id: str) -> tuple:
        return (self.tasks[task_id].priority, task_id_key(task_id))

    def check_references(self) -> None:
        """Raise DanglingDependencyError for the first task with unknown dependencies."""
        for task_id, deps in self.edges.items():
            missing = [d for d in deps if d not in self.tasks]
            if missing:
                raise DanglingDependencyError(task_id, missing)

    def find_cycle(self) -> Optional[list[str]]:
        """Return one cycle as an ordered list of task ids, or None.

        Depth-first search with an on-path stack; the cycle starts at the
        node re-entered by the back-edge. Unknown ids are skipped.
        """
        path: list[str] = []
        on_path: set[str] = set()
        done: set[str] = set()

        def visit(task_id: str) -> Optional[list[str]]:
            path.append(task_id)
            on_path.add(task_id)
            for dep in self.edges[task_id]:
                if dep not in self.tasks:
                    continue
                if dep in on_path:
                    return path[path.index(dep):]
                if dep not in done:
                    cycle = visit(dep)
                    if cycle:
                        return cycle
            path.pop()
            on_path.discard(task_id)
            done.add(task_id)
            return None

        for task_id in self.tasks:
            if task_id not in done:
                cycle = visit(task_id)
                if cycle:
                    return list(cycle)
        return None

    def validate(self) -> None:
        """Check references, then acyclicity.

        Raises:
            DanglingDependencyError: A dependency names a task not in the feature
            CycleError: The dependencies form a cycle (self-loops included)
        """
        self.check_references()
        cycle = self.find_cycle()
        if cycle:
            raise CycleError(cycle)

    def topological_order(self) -> list[str]:
        """Kahn's algorithm; ready tasks are taken by priority, then id.

        Every task appears after all tasks it depends on.
        """
        self.check_references()

        indegree = {task_id: len(deps) for task_id, deps in self.edges.items()}
        dependents: dict[str, list[str]] = {task_id: [] for task_id in self.tasks}
        for task_id, deps in self.edges.items():
            for dep in deps:
                dependents[dep].append(task_id)

        ready = [(self._sort_key(t), t) for t, n in indegree.items() if n == 0]
        heapq.heapify(ready)

        order = []
        while ready:
            _, task_id = heapq.heappop(ready)
            order.append(task_id)
            for child in dependents[task_id]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    heapq.heappush(ready, (self._sort_key(child), child))

        if len(order) < len(self.tasks):
            remaining = [t for t in self.tasks if t not in set(order)]
            raise CycleError(self.find_cycle() or remaining)
        return order

    def is_unblocked(self, task: Task) -> bool:
        """True when every dependency resolves to a completed task."""
        return not self.blockers(task)

    def blockers(self, task: Task) -> list[str]:
        """Dependency ids of a task that are not completed (unknown ids included)."""
        blocking = []
        for dep in self.edges.get(task.id, list(dict.fromkeys(task.depends_on))):
            upstream = self.tasks.get(dep)
            if upstream is None or upstream.status != TaskStatus.COMPLETED:
                blocking.append(dep)
        return blocking

    def ancestors(self, task_id: str) -> set[str]:
        """All tasks this task depends on, directly or transitively."""
        seen: set[str] = set()
        stack = [d for d in self.edges.get(task_id, []) if d in self.tasks]
        while stack:
            dep = stack.pop()
            if dep in seen:
                continue
            seen.add(dep)
            stack.extend(d for d in self.edges[dep] if d in self.tasks and d not in seen)
        return seen

    def is_ordered(self, a: str, b: str) -> bool:
        """True if either task transitively depends on the other."""
        return b in self.ancestors(a) or a in self.ancestors(b)
