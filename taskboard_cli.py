#!/usr/bin/env python3
"""
Task Board CLI
--------------
Inspect and edit the local task board from a terminal. Reads and writes the
same documents as any other front end using pkg.taskboard.

Usage:
    python taskboard_cli.py boards
    python taskboard_cli.py add "Write release notes" --priority high
    python taskboard_cli.py move task-1700000000000-ab12... done
    python taskboard_cli.py stats

    # Point at another database
    TASKBOARD_DB=/tmp/board.db python taskboard_cli.py tasks --status todo

Output is JSON on stdout; errors go to stderr with exit code 1.
"""

import argparse
import asyncio
import json
import logging
import sys

from pkg.taskboard.auth import AuthStore, ValidationError
from pkg.taskboard.config import ConfigError, Settings
from pkg.taskboard.document import auth_documents, board_documents
from pkg.taskboard.kvstore import StorageUnavailable, open_backend, require_backend
from pkg.taskboard.schema import TaskPriority, TaskStatus
from pkg.taskboard.store import BoardRepository, NotFound

logger = logging.getLogger("taskboard")

STATUS_CHOICES = [s.value for s in TaskStatus]
PRIORITY_CHOICES = [p.value for p in TaskPriority]


def _print(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Local Kanban task board")
    ap.add_argument("--config", default=None, help="Path to taskboard.yaml")
    ap.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    ap.add_argument("--board", default=None, help="Board id (default: configured default board)")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("boards", help="List boards")

    p = sub.add_parser("new-board", help="Create a board")
    p.add_argument("name")
    p.add_argument("--description", default=None)

    p = sub.add_parser("delete-board", help="Delete a board and all of its tasks")
    p.add_argument("board_id")

    p = sub.add_parser("tasks", help="List tasks on a board")
    p.add_argument("--status", choices=STATUS_CHOICES)
    p.add_argument("--priority", choices=PRIORITY_CHOICES)
    p.add_argument("--search", default=None, help="Case-insensitive title/description match")

    p = sub.add_parser("add", help="Create a task")
    p.add_argument("title")
    p.add_argument("--description", default="")
    p.add_argument("--status", choices=STATUS_CHOICES, default="todo")
    p.add_argument("--priority", choices=PRIORITY_CHOICES, default="medium")
    p.add_argument("--due", default=None, help="Due date (ISO-8601)")

    p = sub.add_parser("move", help="Move a task to another column")
    p.add_argument("task_id")
    p.add_argument("status", choices=STATUS_CHOICES)

    p = sub.add_parser("comment", help="Comment on a task")
    p.add_argument("task_id")
    p.add_argument("text")
    p.add_argument("--author", default="User")

    p = sub.add_parser("delete", help="Delete a task")
    p.add_argument("task_id")

    sub.add_parser("stats", help="Board statistics")

    p = sub.add_parser("login", help="Start a local session")
    p.add_argument("email")
    p.add_argument("password")

    sub.add_parser("logout", help="Clear the local session")
    sub.add_parser("whoami", help="Show the signed-in user")
    return ap


def run(args, settings: Settings) -> None:
    logger.debug("Using database %s", settings.db_path)
    backend = require_backend(open_backend(settings.db_path))
    repo = BoardRepository(board_documents(backend, settings.board_key))
    auth = AuthStore(auth_documents(backend, settings.auth_key), latency=settings.auth_latency)
    board_id = args.board or settings.default_board_id
    cmd = args.command

    if cmd == "boards":
        _print([
            {"id": b.id, "name": b.name, "description": b.description, "tasks": len(b.tasks)}
            for b in repo.get_boards()
        ])
    elif cmd == "new-board":
        _print(repo.create_board(args.name, args.description).to_dict())
    elif cmd == "delete-board":
        repo.delete_board(args.board_id)
        _print({"deleted": args.board_id})
    elif cmd == "tasks":
        if args.search is not None:
            tasks = repo.search_tasks(args.search, board_id)
        else:
            tasks = repo.get_tasks(board_id)
        if args.status:
            tasks = [t for t in tasks if t.status.value == args.status]
        if args.priority:
            tasks = [t for t in tasks if t.priority.value == args.priority]
        _print([t.to_dict() for t in tasks])
    elif cmd == "add":
        task = repo.create_task(
            {
                "title": args.title,
                "description": args.description,
                "status": args.status,
                "priority": args.priority,
                "due_date": args.due,
            },
            board_id,
        )
        _print(task.to_dict())
    elif cmd == "move":
        _print(repo.update_task(args.task_id, {"status": args.status}, board_id).to_dict())
    elif cmd == "comment":
        _print(repo.add_comment(args.task_id, args.text, args.author, board_id).to_dict())
    elif cmd == "delete":
        repo.delete_task(args.task_id, board_id)
        _print({"deleted": args.task_id})
    elif cmd == "stats":
        _print(repo.get_stats(board_id))
    elif cmd == "login":
        user = asyncio.run(auth.login(args.email, args.password))
        _print(user.to_dict())
    elif cmd == "logout":
        auth.logout()
        _print({"isAuthenticated": False})
    elif cmd == "whoami":
        user = auth.get_current_user()
        _print({"isAuthenticated": auth.is_authenticated(), "user": user.to_dict() if user else None})


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1
    if args.db is not None:
        settings.db_path = args.db
        settings.resolve_paths()

    logging.basicConfig(
        level=settings.level,
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        run(args, settings)
    except (NotFound, ValidationError, StorageUnavailable) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
