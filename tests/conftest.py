"""Shared fixtures: a throw-away SQLite backend and signed-in sessions."""

from __future__ import annotations

import bcrypt
import pytest

import auth
import store

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep hashing cheap; the hash format is unchanged."""

    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=12, prefix=b"2b": real_gensalt(4, prefix))


@pytest.fixture
def backend(tmp_path) -> store.SqliteBackend:
    return store.SqliteBackend(tmp_path / "membership.db", ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def admin_session(backend) -> auth.Session:
    session = auth.sign_in(backend, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert session is not None
    return session


@pytest.fixture
def user_session(backend) -> auth.Session:
    auth.sign_up(backend, "staff@example.com", "secret1", "Staff Member")
    session = auth.sign_in(backend, "staff@example.com", "secret1")
    assert session is not None
    return session
