"""
JSON document persistence over a key-value slot.

One document per logical store:
  project-management-data  → {"boards": [...]}
  project-management-auth  → {"user": {...} | null, "isAuthenticated": bool}

Reads that find nothing (or garbage) bootstrap the default document.
Without a backend every read returns the empty document and writes are dropped.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from .kvstore import KeyValueBackend
from .schema import Board, Task, TaskStatus, TaskPriority, make_id, utc_now

logger = logging.getLogger(__name__)

BOARD_STORE_KEY = "project-management-data"
AUTH_STORE_KEY = "project-management-auth"

DEFAULT_BOARD_ID = "default-board"
DEFAULT_BOARD_NAME = "My Project Board"

Document = Dict[str, Any]


def default_board(
    clock: Callable[[], str] = utc_now,
    id_factory: Callable[[str], str] = make_id,
) -> Board:
    """The board a fresh store starts with: one sample task in To Do."""
    now = clock()
    return Board(
        id=DEFAULT_BOARD_ID,
        name=DEFAULT_BOARD_NAME,
        description="Default project management board",
        created_at=now,
        tasks=[
            Task(
                id=id_factory("task"),
                title="Welcome to your project board!",
                description="This is a sample task. Click to edit or drag to move between columns.",
                status=TaskStatus.TODO,
                priority=TaskPriority.MEDIUM,
                created_at=now,
                updated_at=now,
            )
        ],
    )


def empty_board_document() -> Document:
    return {"boards": []}


def signed_out_document() -> Document:
    return {"user": None, "isAuthenticated": False}


class JsonDocumentStore:
    """Reads and writes one JSON document under a fixed key."""

    def __init__(
        self,
        backend: Optional[KeyValueBackend],
        key: str,
        default_factory: Callable[[], Document],
        empty_factory: Optional[Callable[[], Document]] = None,
    ):
        self.backend = backend
        self.key = key
        self.default_factory = default_factory
        self.empty_factory = empty_factory or default_factory

    @property
    def available(self) -> bool:
        return self.backend is not None

    def load(self) -> Document:
        """Return the stored document, bootstrapping the default if needed."""
        if self.backend is None:
            logger.debug("Storage unavailable; returning empty document for %s", self.key)
            return self.empty_factory()

        raw = self.backend.get(self.key)
        if raw is None:
            doc = self.default_factory()
            logger.info("Initialised default document for %s", self.key)
            self.save(doc)
            return doc

        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as e:
            doc = None
            reason = str(e)
        else:
            reason = f"expected a JSON object, got {type(doc).__name__}"
        if not isinstance(doc, dict):
            logger.warning(
                "Discarding corrupted document under %s (%s); previous data is lost",
                self.key, reason,
            )
            doc = self.default_factory()
            self.save(doc)
        return doc

    def save(self, doc: Document) -> None:
        """Serialize and overwrite the slot."""
        if self.backend is None:
            return
        self.backend.set(self.key, json.dumps(doc, ensure_ascii=False, separators=(",", ":")))


def board_documents(
    backend: Optional[KeyValueBackend],
    key: str = BOARD_STORE_KEY,
    clock: Callable[[], str] = utc_now,
    id_factory: Callable[[str], str] = make_id,
) -> JsonDocumentStore:
    def bootstrap() -> Document:
        return {"boards": [default_board(clock, id_factory).to_dict()]}

    return JsonDocumentStore(backend, key, bootstrap, empty_board_document)


def auth_documents(backend: Optional[KeyValueBackend], key: str = AUTH_STORE_KEY) -> JsonDocumentStore:
    return JsonDocumentStore(backend, key, signed_out_document)
