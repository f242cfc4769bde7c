"""
Local single-seat session store.

There is no credential backend: login accepts any well-formed email and
password and derives a user from them. The artificial `latency` emulates a
network round trip; it is awaited, so other coroutines keep running.
"""
import asyncio
import logging
import re
from typing import Any, Callable, Mapping, Optional

from .document import JsonDocumentStore, signed_out_document
from .schema import User, make_id, utc_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
UPDATABLE_USER_FIELDS = ("email", "name", "avatar")


class ValidationError(ValueError):
    """Raised when login or signup input is empty or malformed."""
    pass


class AuthStore:
    """Holds at most one signed-in user."""

    def __init__(
        self,
        documents: JsonDocumentStore,
        latency: float = 0.5,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[str], str] = make_id,
    ):
        self.documents = documents
        self.latency = latency
        self.clock = clock
        self.id_factory = id_factory

    def _state(self) -> Mapping[str, Any]:
        return self.documents.load()

    def get_current_user(self) -> Optional[User]:
        data = self._state().get("user")
        return User.from_dict(data) if data else None

    def is_authenticated(self) -> bool:
        return bool(self._state().get("isAuthenticated"))

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _start_session(self, user: User) -> User:
        self.documents.save({"user": user.to_dict(), "isAuthenticated": True})
        logger.info("Session started for %s", user.email)
        return user

    async def login(self, email: str, password: str) -> User:
        await self._simulate_latency()

        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = User(
            id=self.id_factory("user"),
            email=email,
            name=email.split("@")[0],
            created_at=self.clock(),
        )
        return self._start_session(user)

    async def signup(self, email: str, password: str, name: str) -> User:
        await self._simulate_latency()

        if not email or not password or not name:
            raise ValidationError("All fields are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if not EMAIL_PATTERN.search(email):
            raise ValidationError("Please enter a valid email address")

        user = User(
            id=self.id_factory("user"),
            email=email,
            name=name,
            created_at=self.clock(),
        )
        return self._start_session(user)

    def logout(self) -> None:
        self.documents.save(signed_out_document())
        logger.info("Session cleared")

    def update_user(self, updates: Mapping[str, Any]) -> Optional[User]:
        """Merge profile fields into the signed-in user; None when signed out."""
        bad = set(updates) - set(UPDATABLE_USER_FIELDS)
        if bad:
            raise ValueError(f"Cannot update user field(s): {sorted(bad)}")

        state = dict(self._state())
        if not state.get("user"):
            return None

        user = User.from_dict(state["user"])
        for name, value in updates.items():
            setattr(user, name, value)
        state["user"] = user.to_dict()
        self.documents.save(state)
        return user
