#!/usr/bin/env python3
"""Feature tracker CLI entrypoint."""

import argparse
import logging
import os
import sys
from pathlib import Path

from tracker.lib.config import (
    CONFIG_FILE,
    TrackerConfig,
    clear_current_feature,
    get_current_feature,
    load_config,
    set_current_feature,
)
from tracker.lib.errors import NotFoundError, TrackerError
from tracker.workflow.engine import build_tracker
from tracker.commands import advance as cmd_advance_module
from tracker.commands import conflicts as cmd_conflicts_module
from tracker.commands import list as cmd_list_module
from tracker.commands import new as cmd_new_module
from tracker.commands import status as cmd_status_module
from tracker.commands import tasks as cmd_tasks_module

DEFAULT_ROOT = ".tracker"


def get_root(args) -> Path:
    """Tracker root from --root, $FT_ROOT, or ./.tracker."""
    if getattr(args, 'root', None):
        return Path(args.root)
    return Path(os.environ.get("FT_ROOT", DEFAULT_ROOT))


def get_config(args) -> TrackerConfig:
    root = get_root(args)
    try:
        config = load_config(root)
    except ValueError as e:
        print(f"ERROR: Invalid {root / CONFIG_FILE}: {e}")
        sys.exit(2)
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return config


def resolve_feature_id(args, config: TrackerConfig) -> str:
    """Resolve feature ID from args or current context."""
    feature_id = getattr(args, 'id', None)
    if feature_id:
        return feature_id

    current = get_current_feature(config)
    if current:
        return current

    print("ERROR: No feature specified. Use 'ft use <id>' to set current feature.")
    sys.exit(2)


def _run(handler, needs_feature: bool = True):
    """Wrap a command handler with config loading and error reporting."""
    def run(args):
        config = get_config(args)
        if needs_feature:
            args.id = resolve_feature_id(args, config)
        tracker = build_tracker(config)
        try:
            return handler(args, tracker, config)
        except NotFoundError as e:
            print(f"ERROR: {e}")
            return 2
        except TrackerError as e:
            print(f"ERROR: {e}")
            if e.invariant:
                print(f"  Rule: {e.invariant}")
            return 1
    return run


def cmd_use(args):
    """Set, show, or clear the current feature context."""
    config = get_config(args)

    if args.clear:
        clear_current_feature(config)
        print("Cleared current feature context.")
        return 0

    if not args.id:
        current = get_current_feature(config)
        if current:
            print(f"Current feature: {current}")
        else:
            print("No current feature set. Use 'ft use <id>' to set one.")
        return 0

    if not (config.store_dir / f"{args.id}.json").exists():
        print(f"ERROR: Feature '{args.id}' not found.")
        return 1

    set_current_feature(config, args.id)
    print(f"Now using feature: {args.id}")
    return 0


def cmd_conflicts(args):
    return _run(cmd_conflicts_module.cmd_conflicts, needs_feature=not args.all)(args)


def main(argv=None):
    parser = argparse.ArgumentParser(prog='ft', description='Feature/task lifecycle tracker')
    parser.add_argument('--root', help=f'Tracker root directory (default: $FT_ROOT or {DEFAULT_ROOT})')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # ft new
    p_new = subparsers.add_parser('new', help='Create feature')
    p_new.add_argument('title', help='Feature title')
    p_new.add_argument('--description', '-d', help='Short description')
    p_new.add_argument('--request', '-r', help='Original request text')
    p_new.set_defaults(func=_run(cmd_new_module.cmd_new, needs_feature=False))

    # ft prd
    p_prd = subparsers.add_parser('prd', help='Record that the PRD exists')
    p_prd.add_argument('id', nargs='?', help='Feature ID (default: current)')
    p_prd.set_defaults(func=_run(cmd_new_module.cmd_prd))

    # ft tasks
    p_tasks = subparsers.add_parser('tasks', help='Manage tasks')
    tasks_sub = p_tasks.add_subparsers(dest='tasks_cmd', required=True)

    p_tasks_add = tasks_sub.add_parser('add', help='Add a batch of tasks from JSON')
    p_tasks_add.add_argument('file', help='JSON file with a list of tasks')
    p_tasks_add.add_argument('--id', help='Feature ID (default: current)')
    p_tasks_add.set_defaults(func=_run(cmd_tasks_module.cmd_tasks_add))

    p_tasks_deps = tasks_sub.add_parser('deps', help='Set task dependencies')
    p_tasks_deps.add_argument('task', help='Task ID')
    p_tasks_deps.add_argument('depends_on', nargs='*', help='Task IDs it depends on')
    p_tasks_deps.add_argument('--id', help='Feature ID (default: current)')
    p_tasks_deps.set_defaults(func=_run(cmd_tasks_module.cmd_tasks_deps))

    p_tasks_fp = tasks_sub.add_parser('footprint', help='Set files a task will touch')
    p_tasks_fp.add_argument('task', help='Task ID')
    p_tasks_fp.add_argument('paths', nargs='*', help='Resource paths')
    p_tasks_fp.add_argument('--id', help='Feature ID (default: current)')
    p_tasks_fp.set_defaults(func=_run(cmd_tasks_module.cmd_tasks_footprint))

    # ft advance
    p_advance = subparsers.add_parser('advance', help='Advance a task to its next status')
    p_advance.add_argument('task', help='Task ID')
    p_advance.add_argument('--to', help='Target status (must be the next one)')
    p_advance.add_argument('--id', help='Feature ID (default: current)')
    p_advance.set_defaults(func=_run(cmd_advance_module.cmd_advance))

    # ft status
    p_status = subparsers.add_parser('status', help='Show feature status')
    p_status.add_argument('id', nargs='?', help='Feature ID (default: current)')
    p_status.set_defaults(func=_run(cmd_status_module.cmd_status))

    # ft next
    p_next = subparsers.add_parser('next', help='Show recommended next action')
    p_next.add_argument('id', nargs='?', help='Feature ID (default: current)')
    p_next.set_defaults(func=_run(cmd_status_module.cmd_next))

    # ft list
    p_list = subparsers.add_parser('list', help='List features')
    p_list.set_defaults(func=_run(cmd_list_module.cmd_list, needs_feature=False))

    # ft conflicts
    p_conflicts = subparsers.add_parser('conflicts', help='Check resource conflicts')
    p_conflicts.add_argument('id', nargs='?', help='Feature ID (default: current)')
    p_conflicts.add_argument('--all', action='store_true', help='Check all features')
    p_conflicts.set_defaults(func=cmd_conflicts)

    # ft use
    p_use = subparsers.add_parser('use', help='Set/show current feature')
    p_use.add_argument('id', nargs='?', help='Feature ID')
    p_use.add_argument('--clear', action='store_true', help='Clear current feature')
    p_use.set_defaults(func=cmd_use)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
