"""
Board/task repository over the board JSON document.

Provides CRUD operations and queries for boards, tasks and comments.
Every mutation is a whole-document read-modify-write: load, change, save once.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .document import DEFAULT_BOARD_ID, JsonDocumentStore
from .schema import (
    Board, Comment, Task, TaskPriority, TaskStatus, make_id, parse_timestamp, utc_now,
)

logger = logging.getLogger(__name__)

# Fields a caller may set on update; id, created_at and comments are owned here
UPDATABLE_TASK_FIELDS = ("title", "description", "status", "priority", "due_date")


class NotFound(LookupError):
    """Raised when a referenced board or task does not exist."""

    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind.capitalize()} not found: {ident}")
        self.kind = kind
        self.ident = ident


def _checked_due_date(value: Any) -> Optional[str]:
    """An empty due date clears it; anything else must parse as ISO-8601."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Invalid due date: {value!r}")
    try:
        parse_timestamp(value)
    except ValueError:
        raise ValueError(f"Invalid due date: {value!r}") from None
    return value


def summarize_tasks(tasks: Iterable[Task], now: Optional[str] = None) -> Dict[str, Any]:
    """Board statistics: totals per column, high priority, overdue, completion rate."""
    cutoff = parse_timestamp(now or utc_now())
    stats = {
        "total": 0,
        "by_status": {s.value: 0 for s in TaskStatus},
        "high_priority": 0,
        "overdue": 0,
        "completion_rate": 0,
    }
    for task in tasks:
        stats["total"] += 1
        stats["by_status"][task.status.value] += 1
        if task.priority == TaskPriority.HIGH:
            stats["high_priority"] += 1
        if task.due_date and parse_timestamp(task.due_date) < cutoff:
            stats["overdue"] += 1
    if stats["total"]:
        stats["completion_rate"] = round(stats["by_status"]["done"] * 100 / stats["total"])
    return stats


class BoardRepository:
    """Typed CRUD for boards, tasks and comments."""

    def __init__(
        self,
        documents: JsonDocumentStore,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[str], str] = make_id,
    ):
        self.documents = documents
        self.clock = clock
        self.id_factory = id_factory

    # ── document plumbing ────────────────────────────────────────────────────

    def _load(self) -> List[Board]:
        return [Board.from_dict(b) for b in self.documents.load().get("boards", [])]

    def _save(self, boards: List[Board]) -> None:
        self.documents.save({"boards": [b.to_dict() for b in boards]})

    @staticmethod
    def _find_board(boards: List[Board], board_id: str) -> Board:
        for board in boards:
            if board.id == board_id:
                return board
        raise NotFound("board", board_id)

    # ── boards ───────────────────────────────────────────────────────────────

    def get_boards(self) -> List[Board]:
        """All boards, in insertion order."""
        return self._load()

    def get_board(self, board_id: str) -> Optional[Board]:
        for board in self._load():
            if board.id == board_id:
                return board
        return None

    def create_board(self, name: str, description: Optional[str] = None) -> Board:
        boards = self._load()
        board = Board(
            id=self.id_factory("board"),
            name=name,
            description=description,
            created_at=self.clock(),
        )
        boards.append(board)
        self._save(boards)
        logger.info("Created board %s (%s)", board.id, name)
        return board

    def delete_board(self, board_id: str) -> None:
        """
        Remove a board together with all of its tasks and comments.

        The last remaining board cannot be deleted; raises ValueError and
        leaves the document untouched.
        """
        boards = self._load()
        board = self._find_board(boards, board_id)
        if len(boards) <= 1:
            raise ValueError(f"Cannot delete the last board: {board_id}")
        self._save([b for b in boards if b.id != board_id])
        logger.info("Deleted board %s with %d task(s)", board_id, len(board.tasks))

    # ── tasks ────────────────────────────────────────────────────────────────

    def get_tasks(self, board_id: str = DEFAULT_BOARD_ID) -> List[Task]:
        """Tasks of a board; an unknown board has none."""
        board = self.get_board(board_id)
        return board.tasks if board else []

    def get_task(self, task_id: str, board_id: str = DEFAULT_BOARD_ID) -> Optional[Task]:
        for task in self.get_tasks(board_id):
            if task.id == task_id:
                return task
        return None

    def create_task(self, data: Mapping[str, Any], board_id: str = DEFAULT_BOARD_ID) -> Task:
        """
        Create a task on a board.

        `data` carries title (required), description, status, priority and
        due_date. Raises NotFound if the board does not exist.
        """
        title = data.get("title")
        if not title:
            raise ValueError("Task title is required")
        unknown = set(data) - set(UPDATABLE_TASK_FIELDS)
        if unknown:
            raise ValueError(f"Unknown task field(s): {sorted(unknown)}")

        due_date = _checked_due_date(data.get("due_date"))

        boards = self._load()
        board = self._find_board(boards, board_id)
        now = self.clock()
        task = Task(
            id=self.id_factory("task"),
            title=title,
            description=data.get("description") or "",
            status=TaskStatus.from_str(data.get("status", TaskStatus.TODO)),
            priority=TaskPriority.from_str(data.get("priority", TaskPriority.MEDIUM)),
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        board.tasks.append(task)
        self._save(boards)
        logger.info("Created task %s on board %s", task.id, board_id)
        return task

    def update_task(
        self,
        task_id: str,
        updates: Mapping[str, Any],
        board_id: str = DEFAULT_BOARD_ID,
    ) -> Task:
        """Merge `updates` into a task and refresh updated_at."""
        bad = set(updates) - set(UPDATABLE_TASK_FIELDS)
        if bad:
            raise ValueError(f"Cannot update task field(s): {sorted(bad)}")
        if "due_date" in updates:
            updates = {**updates, "due_date": _checked_due_date(updates["due_date"])}

        boards = self._load()
        board = self._find_board(boards, board_id)
        task = board.find_task(task_id)
        if task is None:
            raise NotFound("task", task_id)

        for name, value in updates.items():
            if name == "status":
                value = TaskStatus.from_str(value)
            elif name == "priority":
                value = TaskPriority.from_str(value)
            elif name == "description":
                value = value or ""
            elif name == "title" and not value:
                raise ValueError("Task title cannot be empty")
            setattr(task, name, value)
        task.touch(self.clock())

        self._save(boards)
        logger.debug("Updated task %s: %s", task_id, sorted(updates))
        return task

    def delete_task(self, task_id: str, board_id: str = DEFAULT_BOARD_ID) -> None:
        """Remove a task. Deleting a task that is already gone is a no-op."""
        boards = self._load()
        board = self._find_board(boards, board_id)
        before = len(board.tasks)
        board.tasks = [t for t in board.tasks if t.id != task_id]
        if len(board.tasks) == before:
            logger.debug("Task %s not on board %s; nothing to delete", task_id, board_id)
            return
        self._save(boards)
        logger.info("Deleted task %s from board %s", task_id, board_id)

    # ── comments ─────────────────────────────────────────────────────────────

    def add_comment(
        self,
        task_id: str,
        text: str,
        author: str = "User",
        board_id: str = DEFAULT_BOARD_ID,
    ) -> Comment:
        boards = self._load()
        board = self._find_board(boards, board_id)
        task = board.find_task(task_id)
        if task is None:
            raise NotFound("task", task_id)

        now = self.clock()
        comment = Comment(id=self.id_factory("comment"), text=text, author=author, created_at=now)
        task.comments.append(comment)
        task.touch(now)
        self._save(boards)
        logger.debug("Added comment %s to task %s", comment.id, task_id)
        return comment

    # ── queries ──────────────────────────────────────────────────────────────

    def search_tasks(self, query: str, board_id: str = DEFAULT_BOARD_ID) -> List[Task]:
        """Case-insensitive substring match on title or description."""
        needle = query.lower()
        return [
            t for t in self.get_tasks(board_id)
            if needle in t.title.lower() or needle in t.description.lower()
        ]

    def get_tasks_by_status(self, status, board_id: str = DEFAULT_BOARD_ID) -> List[Task]:
        status = TaskStatus.from_str(status)
        return [t for t in self.get_tasks(board_id) if t.status == status]

    def get_tasks_by_priority(self, priority, board_id: str = DEFAULT_BOARD_ID) -> List[Task]:
        priority = TaskPriority.from_str(priority)
        return [t for t in self.get_tasks(board_id) if t.priority == priority]

    def get_stats(self, board_id: str = DEFAULT_BOARD_ID, now: Optional[str] = None) -> Dict[str, Any]:
        """Get board statistics grouped by status, plus priority and deadline counts."""
        return summarize_tasks(self.get_tasks(board_id), now=now)
