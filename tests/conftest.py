"""Shared test fixtures for the task board tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from pkg.taskboard.document import auth_documents, board_documents
from pkg.taskboard.kvstore import MemoryKeyValueStore, SqliteKeyValueStore
from pkg.taskboard.store import BoardRepository


class TickClock:
    """Deterministic clock: every call is one millisecond after the previous one."""

    def __init__(self, start="2024-05-01T10:00:00"):
        self.current = datetime.fromisoformat(start).replace(tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.current += timedelta(milliseconds=1)
        return self.current.strftime("%Y-%m-%dT%H:%M:%S.") + f"{self.current.microsecond // 1000:03d}Z"


@pytest.fixture
def clock():
    return TickClock()


@pytest.fixture
def backend():
    return MemoryKeyValueStore()


@pytest.fixture
def sqlite_backend(tmp_path):
    return SqliteKeyValueStore(str(tmp_path / "taskboard.db"))


@pytest.fixture
def repo(backend, clock):
    return BoardRepository(board_documents(backend, clock=clock), clock=clock)


@pytest.fixture
def auth_docs(backend):
    return auth_documents(backend)
