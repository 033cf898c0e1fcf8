"""
ft tasks - Add tasks, edit dependencies, record resource footprints.
"""

import json
from pathlib import Path

from tracker.lib.config import TrackerConfig
from tracker.workflow.engine import Tracker


def load_task_specs(path: Path) -> list[dict]:
    """Read a task batch: a JSON list, or an object with a "tasks" list."""
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("tasks", [])
    if not isinstance(data, list) or not all(isinstance(s, dict) for s in data):
        raise ValueError("task file must hold a list of task objects")
    return data


def cmd_tasks_add(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Append a batch of tasks from a JSON file."""
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: Task file not found: {path}")
        return 2

    try:
        specs = load_task_specs(path)
    except (json.JSONDecodeError, ValueError) as e:
        print(f"ERROR: Invalid task file {path}: {e}")
        return 2

    before = {t.id for t in tracker.get_feature(args.id).tasks}
    feature = tracker.add_tasks(args.id, specs)

    print(f"{feature.id}: {feature.status.value}, {len(feature.tasks)} task(s)")
    for task in feature.tasks:
        if task.id in before:
            continue
        deps = f" (after {', '.join(task.depends_on)})" if task.depends_on else ""
        print(f"  + {task.id} [p{task.priority}] {task.title}{deps}")
    return 0


def cmd_tasks_deps(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Replace a task's dependencies."""
    feature = tracker.set_dependencies(args.id, args.task, args.depends_on)
    task = feature.get_task(args.task)
    deps = ", ".join(task.depends_on) or "none"
    print(f"{feature.id}/{task.id} depends on: {deps}")
    return 0


def cmd_tasks_footprint(args, tracker: Tracker, config: TrackerConfig) -> int:
    """Record the files a task will create or modify."""
    feature = tracker.set_footprint(args.id, args.task, args.paths)
    task = feature.get_task(args.task)
    print(f"{feature.id}/{task.id} footprint: {len(task.resource_footprint)} path(s)")
    for path in task.resource_footprint:
        print(f"  - {path}")
    return 0
