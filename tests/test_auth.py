"""
Tests for the local session store.
"""
import asyncio
import time

import pytest

from pkg.taskboard.auth import AuthStore, ValidationError
from pkg.taskboard.document import AUTH_STORE_KEY, auth_documents


@pytest.fixture
def auth(auth_docs, clock):
    return AuthStore(auth_docs, latency=0, clock=clock)


def test_signed_out_by_default(auth):
    assert auth.get_current_user() is None
    assert not auth.is_authenticated()


def test_login_creates_session(auth, backend):
    """Test login derives the display name from the email local part"""
    user = asyncio.run(auth.login("ann@example.com", "secret1"))
    assert user.name == "ann"
    assert user.email == "ann@example.com"
    assert user.id.startswith("user-")
    assert auth.is_authenticated()
    assert auth.get_current_user() == user
    assert '"isAuthenticated":true' in backend.get(AUTH_STORE_KEY)


@pytest.mark.parametrize("email,password", [
    ("", "secret1"),
    ("a@b.com", ""),
    ("a@b.com", "short"),
])
def test_login_validation_leaves_session_unchanged(auth, backend, email, password):
    asyncio.run(auth.login("first@example.com", "secret1"))
    before = backend.get(AUTH_STORE_KEY)

    with pytest.raises(ValidationError):
        asyncio.run(auth.login(email, password))

    assert backend.get(AUTH_STORE_KEY) == before
    assert auth.get_current_user().email == "first@example.com"


def test_short_password_on_fresh_store(auth):
    with pytest.raises(ValidationError, match="at least 6"):
        asyncio.run(auth.login("a@b.com", "short"))
    assert not auth.is_authenticated()


def test_signup(auth):
    user = asyncio.run(auth.signup("bo@example.com", "secret1", "Bo Jensen"))
    assert user.name == "Bo Jensen"
    assert auth.get_current_user() == user


@pytest.mark.parametrize("email,password,name", [
    ("bo@example.com", "secret1", ""),
    ("bo@example.com", "12345", "Bo"),
    ("not-an-email", "secret1", "Bo"),
    ("bo@example", "secret1", "Bo"),
])
def test_signup_validation(auth, email, password, name):
    with pytest.raises(ValidationError):
        asyncio.run(auth.signup(email, password, name))
    assert not auth.is_authenticated()


def test_logout(auth):
    asyncio.run(auth.login("ann@example.com", "secret1"))
    auth.logout()
    assert auth.get_current_user() is None
    assert not auth.is_authenticated()


def test_update_user(auth):
    assert auth.update_user({"name": "Nobody"}) is None

    user = asyncio.run(auth.login("ann@example.com", "secret1"))
    updated = auth.update_user({"name": "Ann A.", "avatar": "/img/ann.png"})
    assert updated.name == "Ann A."
    assert updated.avatar == "/img/ann.png"
    assert updated.id == user.id
    assert updated.created_at == user.created_at
    assert auth.get_current_user() == updated

    with pytest.raises(ValueError):
        auth.update_user({"id": "hijack"})


def test_latency_is_cooperative(auth_docs):
    """Test the simulated delay lets other coroutines run"""
    store = AuthStore(auth_docs, latency=0.05)
    ticks = []

    async def ticker():
        for _ in range(3):
            ticks.append(time.monotonic())
            await asyncio.sleep(0.01)

    async def scenario():
        user, _ = await asyncio.gather(store.login("ann@example.com", "secret1"), ticker())
        return user

    started = time.monotonic()
    user = asyncio.run(scenario())
    assert time.monotonic() - started >= 0.05
    assert len(ticks) == 3
    assert user.name == "ann"


def test_no_storage_means_no_session():
    store = AuthStore(auth_documents(None), latency=0)
    asyncio.run(store.login("ann@example.com", "secret1"))
    assert not store.is_authenticated()
