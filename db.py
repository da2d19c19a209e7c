"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default admin, etc.)
This is the local stand-in for the hosted data service; see store.py.

Every helper takes the database path; nothing here holds a current file.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def get_conn(path: Path):
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(path: Path, sql: str, params: tuple = ()) -> int:
    with get_conn(path) as conn:
        cur = conn.execute(sql, params)
        return cur.rowcount


def fetch_one(path: Path, sql: str, params: tuple = ()):
    with get_conn(path) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(path: Path, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    with get_conn(path) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def _create_tables(path: Path) -> None:
    execute(
        path,
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            full_name TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('admin','user')),
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )

    execute(
        path,
        """
        CREATE TABLE IF NOT EXISTS memberships (
            id TEXT PRIMARY KEY,
            membership_number TEXT NOT NULL UNIQUE,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT NOT NULL,
            duration TEXT NOT NULL CHECK(duration IN ('6m','1y','2y')),
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            status TEXT NOT NULL CHECK(status IN ('active','cancelled','expired')),
            created_by TEXT REFERENCES profiles(id),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    execute(
        path,
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            membership_id TEXT REFERENCES memberships(id),
            transaction_type TEXT NOT NULL CHECK(transaction_type IN ('payment','refund','extension')),
            amount REAL NOT NULL CHECK(amount > 0),
            description TEXT NOT NULL,
            transaction_date TEXT NOT NULL,
            created_by TEXT REFERENCES profiles(id),
            created_at TEXT NOT NULL
        )
        """
    )

    # Small settings table (used to force password change on first login)
    execute(
        path,
        """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )


def _get_setting(path: Path, key: str, default: str | None = None) -> str | None:
    row = fetch_one(path, "SELECT value FROM app_settings WHERE key = ?", (key,))
    if row:
        return str(row["value"])
    return default


def _set_setting(path: Path, key: str, value: str) -> None:
    execute(
        path,
        """
        INSERT INTO app_settings(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def init_db(path: Path, default_admin_email: str, default_admin_hash: str) -> None:
    """
    Initialize the database at `path`.
    - Create tables
    - Insert the default admin profile if no admin exists
    - Force password change on first login
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    _create_tables(path)

    admin = fetch_one(path, "SELECT id FROM profiles WHERE role = 'admin' LIMIT 1")
    if not admin:
        admin_id = new_id()
        execute(
            path,
            """
            INSERT INTO profiles(id, email, full_name, role, password_hash, created_at)
            VALUES(?,?,?,?,?,?)
            """,
            (admin_id, default_admin_email.strip().lower(), "Administrator", "admin", default_admin_hash, now_iso()),
        )
        # holds the id of the profile that must change its password
        _set_setting(path, "force_password_change", admin_id)
    else:
        # ensure setting exists
        if _get_setting(path, "force_password_change") is None:
            _set_setting(path, "force_password_change", "")


def is_force_password_change(path: Path, profile_id: str) -> bool:
    return bool(profile_id) and _get_setting(path, "force_password_change") == profile_id


def clear_force_password_change(path: Path) -> None:
    _set_setting(path, "force_password_change", "")
