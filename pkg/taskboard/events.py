"""
Event bridge: connects presentation actions to repository writes and the column view.

Each action persists through BoardRepository first, then applies the matching
reducer transition to the in-memory columns, then notifies subscribers.
The view is therefore never ahead of what is stored.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .document import DEFAULT_BOARD_ID
from .reducer import (
    Action, AddTask, Column, DeleteTask, MoveTask, SetTasks, UpdateTask,
    build_columns, filter_columns, task_reducer,
)
from .schema import Comment, Task, TaskStatus
from .store import BoardRepository, summarize_tasks

logger = logging.getLogger(__name__)


class BoardEventBridge:
    """Routes board actions to repository updates and reducer transitions."""

    def __init__(self, repository: BoardRepository, board_id: str = DEFAULT_BOARD_ID):
        """Initialize bridge for one board. Call load() before use."""
        self.repository = repository
        self.board_id = board_id
        self.columns: List[Column] = build_columns([])
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers."""
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception("Error in %s callback", event_type)

    def _dispatch(self, *actions: Action) -> None:
        for action in actions:
            self.columns = task_reducer(self.columns, action)
        self._emit("columns_changed", columns=self.columns)

    def load(self) -> List[Column]:
        """Replace the view with what the repository holds."""
        tasks = self.repository.get_tasks(self.board_id)
        self._dispatch(SetTasks(tuple(build_columns(tasks))))
        return self.columns

    def add_task(self, data: Mapping[str, Any]) -> Task:
        task = self.repository.create_task(data, self.board_id)
        self._dispatch(AddTask(task))
        self._emit("task_added", task=task)
        return task

    def edit_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        """Persist field changes; a status change also moves the card."""
        previous = self.find(task_id)
        task = self.repository.update_task(task_id, updates, self.board_id)
        if previous is not None and previous.status != task.status:
            self._dispatch(MoveTask(task_id, task.status, task.updated_at), UpdateTask(task))
            self._emit("task_moved", task=task, from_status=previous.status)
        else:
            self._dispatch(UpdateTask(task))
        self._emit("task_updated", task=task)
        return task

    def move_task(self, task_id: str, new_status) -> Task:
        new_status = TaskStatus.from_str(new_status)
        previous = self.find(task_id)
        task = self.repository.update_task(task_id, {"status": new_status}, self.board_id)
        self._dispatch(MoveTask(task_id, new_status, task.updated_at), UpdateTask(task))
        self._emit(
            "task_moved",
            task=task,
            from_status=previous.status if previous else None,
        )
        return task

    def delete_task(self, task_id: str) -> None:
        self.repository.delete_task(task_id, self.board_id)
        self._dispatch(DeleteTask(task_id))
        self._emit("task_deleted", task_id=task_id)

    def add_comment(self, task_id: str, text: str, author: str = "User") -> Comment:
        comment = self.repository.add_comment(task_id, text, author, self.board_id)
        task = self.repository.get_task(task_id, self.board_id)
        if task is not None:
            self._dispatch(UpdateTask(task))
        self._emit("comment_added", task_id=task_id, comment=comment)
        return comment

    # ── view queries ─────────────────────────────────────────────────────────

    def find(self, task_id: str) -> Optional[Task]:
        for col in self.columns:
            for task in col.tasks:
                if task.id == task_id:
                    return task
        return None

    def visible_columns(self, query: str = "", priority=None) -> List[Column]:
        return filter_columns(self.columns, query=query, priority=priority)

    def stats(self, now: Optional[str] = None) -> Dict[str, Any]:
        return summarize_tasks((t for col in self.columns for t in col.tasks), now=now)
