"""
store.py
Data-access boundary for profiles, memberships and transactions.

Two backends implement the same contract:
    * SqliteBackend   - local SQLite file through db.py (default, used by tests).
    * SupabaseBackend - hosted Supabase project through the supabase client.

The module-level functions are the only way views and logic modules touch
data. Each one checks the session's capability before calling the backend
and wraps backend failures in BackendError with the original message.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path

import httpx
from postgrest.exceptions import APIError
from supabase import AuthApiError, AuthError, Client, create_client

import auth
import db
from config import Settings
from errors import BackendError, ValidationError
from logging_utils import get_logger
from models import Capability, Membership, Profile, Transaction

LOGGER = get_logger(__name__)

MEMBERSHIP_COLUMNS = (
    "id", "membership_number", "full_name", "email", "phone", "duration",
    "start_date", "end_date", "status", "created_by", "created_at", "updated_at",
)
TRANSACTION_COLUMNS = (
    "id", "membership_id", "transaction_type", "amount", "description",
    "transaction_date", "created_by", "created_at",
)

CANCELLED_IS_FINAL = "Cancelled memberships cannot be changed"


@contextmanager
def _backend_errors(action: str):
    try:
        yield
    except sqlite3.Error as error:
        LOGGER.warning("%s failed: %s", action, error)
        raise BackendError(str(error)) from error
    except APIError as error:
        LOGGER.warning("%s rejected by Supabase: %s", action, error.message)
        raise BackendError(error.message or str(error)) from error
    except AuthError as error:
        LOGGER.warning("%s rejected by Supabase auth: %s", action, error)
        raise BackendError(str(error)) from error
    except httpx.HTTPError as error:
        LOGGER.warning("%s failed to reach Supabase: %s", action, error)
        raise BackendError(str(error)) from error


class SqliteBackend:
    """Profiles, memberships and transactions in a local SQLite file."""

    def __init__(self, database_file, default_admin_email: str, default_admin_password: str):
        self.database_file = Path(database_file)
        with _backend_errors("Database initialisation"):
            db.init_db(self.database_file, default_admin_email, auth.hash_password(default_admin_password))

    def _one(self, sql: str, params: tuple = ()):
        return db.fetch_one(self.database_file, sql, params)

    # ---------- identity ----------

    def sign_in(self, email: str, password: str) -> Profile | None:
        with _backend_errors("Sign-in"):
            row = self._one("SELECT * FROM profiles WHERE email = ?", (email,))
        if not row or not auth.verify_password(password, row["password_hash"]):
            return None
        return Profile.from_row(row)

    def sign_up(self, email: str, password: str, full_name: str) -> Profile:
        with _backend_errors("Sign-up"):
            if self._one("SELECT id FROM profiles WHERE email = ?", (email,)):
                raise ValidationError("An account with this email already exists")
            profile_id = db.new_id()
            db.execute(
                self.database_file,
                """
                INSERT INTO profiles(id, email, full_name, role, password_hash, created_at)
                VALUES(?,?,?,?,?,?)
                """,
                (profile_id, email, full_name, "user", auth.hash_password(password), db.now_iso()),
            )
            return Profile.from_row(self._one("SELECT * FROM profiles WHERE id = ?", (profile_id,)))

    def sign_out(self) -> None:
        pass

    def change_password(self, profile_id: str, new_password: str) -> None:
        with _backend_errors("Password change"):
            db.execute(
                self.database_file,
                "UPDATE profiles SET password_hash = ? WHERE id = ?",
                (auth.hash_password(new_password), profile_id),
            )
            db.clear_force_password_change(self.database_file)

    def needs_password_change(self, profile_id: str) -> bool:
        with _backend_errors("Password check"):
            return db.is_force_password_change(self.database_file, profile_id)

    # ---------- data ----------

    def membership_by_number(self, number: str):
        return self._one("SELECT * FROM memberships WHERE membership_number = ?", (number,))

    def list_memberships(self):
        return db.fetch_all(self.database_file, "SELECT * FROM memberships ORDER BY created_at DESC, rowid DESC")

    def insert_membership(self, values: dict):
        values = {"id": db.new_id(), **values}
        cols = ", ".join(values)
        marks = ",".join("?" for _ in values)
        db.execute(self.database_file, f"INSERT INTO memberships({cols}) VALUES({marks})", tuple(values.values()))
        return self._one("SELECT * FROM memberships WHERE id = ?", (values["id"],))

    def update_membership(self, membership_id: str, changes: dict):
        assignments = ", ".join(f"{col}=?" for col in changes)
        applied = db.execute(
            self.database_file,
            f"UPDATE memberships SET {assignments} WHERE id=? AND status != 'cancelled'",
            (*changes.values(), membership_id),
        )
        row = self._one("SELECT * FROM memberships WHERE id = ?", (membership_id,))
        if not applied and row is not None:
            raise ValidationError(CANCELLED_IS_FINAL)
        return row

    def list_transactions(self):
        return db.fetch_all(
            self.database_file,
            "SELECT * FROM transactions ORDER BY transaction_date DESC, created_at DESC, rowid DESC",
        )

    def insert_transaction(self, values: dict):
        values = {"id": db.new_id(), **values}
        cols = ", ".join(values)
        marks = ",".join("?" for _ in values)
        db.execute(self.database_file, f"INSERT INTO transactions({cols}) VALUES({marks})", tuple(values.values()))
        return self._one("SELECT * FROM transactions WHERE id = ?", (values["id"],))


class SupabaseBackend:
    """Hosted tables and auth; row-level security is enforced by the project."""

    def __init__(self, client: Client):
        self.client = client

    def _profile(self, user_id: str):
        rows = self.client.table("profiles").select("*").eq("id", user_id).limit(1).execute().data
        return rows[0] if rows else None

    # ---------- identity ----------

    def sign_in(self, email: str, password: str) -> Profile | None:
        try:
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthApiError as error:
            LOGGER.info("Supabase refused sign-in for %s: %s", email, error)
            return None
        except (AuthError, httpx.HTTPError) as error:
            raise BackendError(str(error)) from error
        with _backend_errors("Profile fetch"):
            row = self._profile(res.user.id)
        if row is None:
            raise BackendError("No profile exists for this account")
        return Profile.from_row(row)

    def sign_up(self, email: str, password: str, full_name: str) -> Profile:
        with _backend_errors("Sign-up"):
            res = self.client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": {"full_name": full_name}}}
            )
            if res.user is None:
                raise BackendError("Sign-up did not return a user")
            rows = (
                self.client.table("profiles")
                .insert({"id": res.user.id, "email": email, "full_name": full_name, "role": "user"})
                .execute()
                .data
            )
        return Profile.from_row(rows[0])

    def sign_out(self) -> None:
        with _backend_errors("Sign-out"):
            self.client.auth.sign_out()

    def change_password(self, profile_id: str, new_password: str) -> None:
        with _backend_errors("Password change"):
            self.client.auth.update_user({"password": new_password})

    def needs_password_change(self, profile_id: str) -> bool:
        return False

    # ---------- data ----------

    def membership_by_number(self, number: str):
        rows = (
            self.client.table("memberships")
            .select("*")
            .eq("membership_number", number)
            .limit(1)
            .execute()
            .data
        )
        return rows[0] if rows else None

    def list_memberships(self):
        return self.client.table("memberships").select("*").order("created_at", desc=True).execute().data

    def insert_membership(self, values: dict):
        return self.client.table("memberships").insert(values).execute().data[0]

    def update_membership(self, membership_id: str, changes: dict):
        rows = (
            self.client.table("memberships")
            .update(changes)
            .eq("id", membership_id)
            .neq("status", "cancelled")
            .execute()
            .data
        )
        if rows:
            return rows[0]
        current = self.client.table("memberships").select("status").eq("id", membership_id).limit(1).execute().data
        if current and current[0]["status"] == "cancelled":
            raise ValidationError(CANCELLED_IS_FINAL)
        raise BackendError("Membership update was not applied")

    def list_transactions(self):
        return (
            self.client.table("transactions")
            .select("*")
            .order("transaction_date", desc=True)
            .order("created_at", desc=True)
            .execute()
            .data
        )

    def insert_transaction(self, values: dict):
        return self.client.table("transactions").insert(values).execute().data[0]


def open_backend(settings: Settings):
    if settings.backend == "supabase":
        LOGGER.info("Using Supabase backend at %s", settings.supabase_url)
        return SupabaseBackend(create_client(settings.supabase_url, settings.supabase_anon_key))
    LOGGER.info("Using SQLite backend at %s", settings.database_file)
    return SqliteBackend(
        settings.database_file,
        settings.default_admin_email,
        settings.default_admin_password,
    )


# ---------- guarded data access ----------

def find_membership(session: auth.Session, membership_number: str) -> Membership | None:
    session.require(Capability.VIEW_REPORTS)
    with _backend_errors("Membership lookup"):
        row = session.backend.membership_by_number(membership_number)
    return Membership.from_row(row) if row else None


def list_memberships(session: auth.Session) -> list[Membership]:
    session.require(Capability.VIEW_REPORTS)
    with _backend_errors("Membership listing"):
        rows = session.backend.list_memberships()
    return [Membership.from_row(r) for r in rows]


def insert_membership(session: auth.Session, values: dict) -> Membership:
    session.require(Capability.MANAGE_MEMBERSHIPS)
    with _backend_errors("Membership insert"):
        row = session.backend.insert_membership({**values, "created_by": session.profile.id})
    return Membership.from_row(row)


def update_membership(session: auth.Session, membership_id: str, changes: dict) -> Membership:
    session.require(Capability.MANAGE_MEMBERSHIPS)
    with _backend_errors("Membership update"):
        row = session.backend.update_membership(membership_id, changes)
    if row is None:
        raise BackendError("Membership not found")
    return Membership.from_row(row)


def list_transactions(session: auth.Session) -> list[Transaction]:
    session.require(Capability.VIEW_TRANSACTIONS)
    with _backend_errors("Transaction listing"):
        rows = session.backend.list_transactions()
    return [Transaction.from_row(r) for r in rows]


def insert_transaction(session: auth.Session, values: dict) -> Transaction:
    session.require(Capability.RECORD_TRANSACTIONS)
    with _backend_errors("Transaction insert"):
        row = session.backend.insert_transaction({**values, "created_by": session.profile.id})
    return Transaction.from_row(row)
