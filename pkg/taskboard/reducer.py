"""
Column view of a board and the reducer that transitions it.

The view is an ordered list of three columns (todo, in-progress, done).
A task's column is always derived from its `status`; there is no separate
column field to keep in step.

task_reducer never mutates its input: every transition returns fresh
Column objects, and moved tasks are copies.
"""
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .schema import Task, TaskPriority, TaskStatus, utc_now

COLUMN_TITLES: Dict[TaskStatus, str] = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}


@dataclass(frozen=True)
class Column:
    id: str
    title: str
    tasks: Tuple[Task, ...] = ()


# ── actions ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AddTask:
    task: Task


@dataclass(frozen=True)
class UpdateTask:
    task: Task


@dataclass(frozen=True)
class DeleteTask:
    task_id: str


@dataclass(frozen=True)
class MoveTask:
    task_id: str
    new_status: TaskStatus
    updated_at: Optional[str] = None  # stamp to apply; defaults to now


@dataclass(frozen=True)
class SetTasks:
    columns: Tuple[Column, ...]


Action = Union[AddTask, UpdateTask, DeleteTask, MoveTask, SetTasks]


def build_columns(tasks: Iterable[Task]) -> List[Column]:
    """Partition tasks into the three board columns by status."""
    buckets: Dict[TaskStatus, List[Task]] = {s: [] for s in COLUMN_TITLES}
    for task in tasks:
        buckets[task.status].append(task)
    return [
        Column(id=status.value, title=title, tasks=tuple(buckets[status]))
        for status, title in COLUMN_TITLES.items()
    ]


def task_reducer(state: Sequence[Column], action: Action) -> List[Column]:
    """Apply one action to the column view and return the new view."""
    if isinstance(action, AddTask):
        target = action.task.status.value
        return [
            replace(col, tasks=col.tasks + (action.task,)) if col.id == target else col
            for col in state
        ]

    if isinstance(action, UpdateTask):
        new = action.task
        return [
            replace(col, tasks=tuple(new if t.id == new.id else t for t in col.tasks))
            for col in state
        ]

    if isinstance(action, DeleteTask):
        return [
            replace(col, tasks=tuple(t for t in col.tasks if t.id != action.task_id))
            for col in state
        ]

    if isinstance(action, MoveTask):
        return _move(state, action)

    if isinstance(action, SetTasks):
        return list(action.columns)

    return list(state)


def _move(state: Sequence[Column], action: MoveTask) -> List[Column]:
    source_index = None
    moving = None
    for i, col in enumerate(state):
        for t in col.tasks:
            if t.id == action.task_id:
                source_index, moving = i, t
                break
        if moving is not None:
            break
    if moving is None:
        return list(state)

    status = TaskStatus.from_str(action.new_status)
    stamp = max(action.updated_at or utc_now(), moving.updated_at)
    moved = replace(moving, status=status, updated_at=stamp)

    result = []
    for i, col in enumerate(state):
        tasks = col.tasks
        if i == source_index:
            # first match only
            idx = next(k for k, t in enumerate(tasks) if t is moving)
            tasks = tasks[:idx] + tasks[idx + 1:]
        if col.id == status.value:
            tasks = tasks + (moved,)
        result.append(replace(col, tasks=tasks) if tasks is not col.tasks else col)
    return result


def filter_columns(
    columns: Sequence[Column],
    query: str = "",
    priority: Optional[Union[TaskPriority, str]] = None,
) -> List[Column]:
    """Columns narrowed by a search string and an optional priority."""
    needle = query.lower()
    wanted = TaskPriority.from_str(priority) if priority not in (None, "", "all") else None

    def keep(task: Task) -> bool:
        matches = needle in task.title.lower() or needle in task.description.lower()
        return matches and (wanted is None or task.priority == wanted)

    return [replace(col, tasks=tuple(t for t in col.tasks if keep(t))) for col in columns]
