"""Tests for tracker.workflow.graph module."""

import pytest

from tracker.lib.errors import CycleError, DanglingDependencyError
from tracker.models import Task, TaskStatus
from tracker.workflow.graph import DependencyGraph


def make_task(task_id, depends_on=(), priority=1, status=TaskStatus.DEFINED):
    return Task(
        id=task_id,
        slug=f"task-{task_id}",
        title=f"Task {task_id}",
        status=status,
        priority=priority,
        depends_on=list(depends_on),
    )


class TestValidate:
    """Tests for DependencyGraph.validate()."""

    def test_acyclic_graph_passes(self):
        graph = DependencyGraph([
            make_task("001"),
            make_task("002", ["001"]),
            make_task("003", ["001", "002"]),
        ])
        graph.validate()

    def test_two_node_cycle_reports_path(self):
        """003 depends on 001 and 001 depends on 003."""
        graph = DependencyGraph([
            make_task("001", ["003"]),
            make_task("002"),
            make_task("003", ["001"]),
        ])
        with pytest.raises(CycleError) as exc_info:
            graph.validate()
        assert exc_info.value.path == ["001", "003"]

    def test_self_loop(self):
        graph = DependencyGraph([make_task("001", ["001"])])
        with pytest.raises(CycleError) as exc_info:
            graph.validate()
        assert exc_info.value.path == ["001"]

    def test_longer_cycle(self):
        graph = DependencyGraph([
            make_task("001", ["004"]),
            make_task("002", ["001"]),
            make_task("003", ["002"]),
            make_task("004", ["003"]),
            make_task("005"),
        ])
        with pytest.raises(CycleError) as exc_info:
            graph.validate()
        path = exc_info.value.path
        assert sorted(path) == ["001", "002", "003", "004"]
        assert path[0] == "001"

    def test_cycle_behind_acyclic_prefix(self):
        graph = DependencyGraph([
            make_task("001", ["002"]),
            make_task("002", ["003"]),
            make_task("003", ["002"]),
        ])
        with pytest.raises(CycleError) as exc_info:
            graph.validate()
        assert exc_info.value.path == ["002", "003"]

    def test_dangling_reference(self):
        graph = DependencyGraph([make_task("001"), make_task("002", ["001", "009"])])
        with pytest.raises(DanglingDependencyError) as exc_info:
            graph.validate()
        assert exc_info.value.task_id == "002"
        assert exc_info.value.missing == ["009"]

    def test_cycle_message_shows_loop(self):
        exc = CycleError(["001", "003"])
        assert "001 -> 003 -> 001" in str(exc)


class TestTopologicalOrder:
    """Tests for DependencyGraph.topological_order()."""

    def test_dependencies_come_first(self):
        tasks = [
            make_task("001", ["003"], priority=1),
            make_task("002", ["001"], priority=1),
            make_task("003", priority=5),
            make_task("004", ["002", "003"], priority=2),
        ]
        order = DependencyGraph(tasks).topological_order()

        assert sorted(order) == ["001", "002", "003", "004"]
        for task in tasks:
            for dep in task.depends_on:
                assert order.index(dep) < order.index(task.id)

    def test_independent_tasks_by_priority(self):
        order = DependencyGraph([
            make_task("001", priority=3),
            make_task("002", priority=1),
            make_task("003", priority=2),
        ]).topological_order()
        assert order == ["002", "003", "001"]

    def test_priority_ties_by_id(self):
        order = DependencyGraph([
            make_task("003", priority=1),
            make_task("001", priority=1),
            make_task("002", priority=1),
        ]).topological_order()
        assert order == ["001", "002", "003"]

    def test_ready_task_with_lower_priority_waits_for_dependency_chain(self):
        order = DependencyGraph([
            make_task("001", priority=2),
            make_task("002", ["001"], priority=1),
            make_task("003", priority=3),
        ]).topological_order()
        assert order == ["001", "002", "003"]

    def test_cycle_raises(self):
        graph = DependencyGraph([make_task("001", ["002"]), make_task("002", ["001"])])
        with pytest.raises(CycleError):
            graph.topological_order()

    def test_empty_graph(self):
        assert DependencyGraph([]).topological_order() == []


class TestReadiness:
    """Tests for is_unblocked() and blockers()."""

    def test_no_dependencies_is_unblocked(self):
        task = make_task("001")
        assert DependencyGraph([task]).is_unblocked(task) is True

    def test_completed_dependency_unblocks(self):
        """002 depends on completed 001."""
        first = make_task("001", status=TaskStatus.COMPLETED)
        second = make_task("002", ["001"])
        assert DependencyGraph([first, second]).is_unblocked(second) is True

    def test_incomplete_dependency_blocks(self):
        first = make_task("001", status=TaskStatus.IN_PROGRESS)
        second = make_task("002", ["001"])
        graph = DependencyGraph([first, second])
        assert graph.is_unblocked(second) is False
        assert graph.blockers(second) == ["001"]

    def test_dangling_dependency_blocks(self):
        task = make_task("002", ["009"])
        assert DependencyGraph([task]).is_unblocked(task) is False


class TestReachability:
    """Tests for ancestors() and is_ordered()."""

    @pytest.fixture
    def graph(self):
        return DependencyGraph([
            make_task("001"),
            make_task("002", ["001"]),
            make_task("003", ["002"]),
            make_task("004"),
        ])

    def test_ancestors_are_transitive(self, graph):
        assert graph.ancestors("003") == {"001", "002"}
        assert graph.ancestors("001") == set()

    def test_is_ordered_either_direction(self, graph):
        assert graph.is_ordered("003", "001") is True
        assert graph.is_ordered("001", "003") is True
        assert graph.is_ordered("004", "001") is False

    def test_ancestors_terminate_on_cycle(self):
        graph = DependencyGraph([make_task("001", ["002"]), make_task("002", ["001"])])
        assert graph.ancestors("001") == {"001", "002"}

    def test_duplicate_ids_keep_first(self):
        graph = DependencyGraph([make_task("001", priority=1), make_task("001", priority=9)])
        assert graph.tasks["001"].priority == 1
