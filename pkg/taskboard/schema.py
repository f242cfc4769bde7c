"""
Task board schema.

Board → Task → Comment, plus the single-seat User record kept by the auth store.

Serialized layout uses camelCase keys (createdAt, updatedAt, dueDate) and
omits optional fields that are unset, so a document written by this package
survives from_dict/to_dict unchanged.
"""
import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


def utc_now() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 date or timestamp; naive values are taken as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def make_id(prefix: str) -> str:
    """Generate a sortable unique ID (ms-precision timestamp + random uuid4 hex)."""
    ts = int(time.time() * 1000)
    return f"{prefix}-{ts}-{uuid.uuid4().hex}"


class TaskStatus(Enum):
    """Board columns. The value is the column id."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def from_str(cls, value) -> "TaskStatus":
        """Strict lookup by wire value; raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid status: {value!r} (expected one of {[s.value for s in cls]})"
            ) from None


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_str(cls, value) -> "TaskPriority":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid priority: {value!r} (expected one of {[p.value for p in cls]})"
            ) from None


@dataclass
class Comment:
    """Append-only note attached to a task."""
    id: str
    text: str
    author: str
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "author": self.author,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data.get("id", ""),
            text=data.get("text", ""),
            author=data.get("author", ""),
            created_at=data.get("createdAt") or utc_now(),
        )


@dataclass
class Task:
    """A card on the board. `status` is the only column indicator."""

    # Identifiers
    id: str

    # Content
    title: str
    description: str = ""

    # Classification
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[str] = None

    # Metadata
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)
    comments: List[Comment] = field(default_factory=list)

    def touch(self, now: str) -> None:
        """Refresh updated_at without ever moving it backwards."""
        self.updated_at = max(now, self.updated_at or "")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
        }
        if self.due_date is not None:
            data["dueDate"] = self.due_date
        data["createdAt"] = self.created_at
        data["updatedAt"] = self.updated_at
        data["comments"] = [c.to_dict() for c in self.comments]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        created_at = data.get("createdAt") or utc_now()
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=TaskStatus.from_str(data.get("status", "todo")),
            priority=TaskPriority.from_str(data.get("priority", "medium")),
            due_date=data.get("dueDate"),
            created_at=created_at,
            updated_at=data.get("updatedAt") or created_at,
            comments=[Comment.from_dict(c) for c in data.get("comments", [])],
        )


@dataclass
class Board:
    """A named collection of tasks. Owns its tasks and their comments."""
    id: str
    name: str
    description: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    tasks: List[Task] = field(default_factory=list)

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data["createdAt"] = self.created_at
        data["tasks"] = [t.to_dict() for t in self.tasks]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description"),
            created_at=data.get("createdAt") or utc_now(),
            tasks=[Task.from_dict(t) for t in data.get("tasks", [])],
        )


@dataclass
class User:
    """The one locally signed-in user."""
    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "email": self.email, "name": self.name}
        if self.avatar is not None:
            data["avatar"] = self.avatar
        data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data.get("id", ""),
            email=data.get("email", ""),
            name=data.get("name", ""),
            avatar=data.get("avatar"),
            created_at=data.get("createdAt") or utc_now(),
        )
