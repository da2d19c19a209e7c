"""
auth.py
Authentication utilities (bcrypt hashing, verify, sign in/up/out, change password)
and the role capability check shared by the views and store.py.

A signed-in user is represented by an explicit Session object that is passed to
every data operation; sign_in creates it and sign_out tears it down.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import bcrypt

from errors import PermissionDenied, ValidationError
from logging_utils import get_logger
from models import ROLE_CAPABILITIES, Capability, Profile, Role
import utils

LOGGER = get_logger(__name__)


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string (stored in SQLite).
    """
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against stored bcrypt hash.
    """
    secret = _to_bcrypt_secret(password)
    stored = password_hash.encode("utf-8")
    return bcrypt.checkpw(secret, stored)


def can(role: Role | str, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(Role(role), frozenset())


@dataclass
class Session:
    profile: Profile
    backend: object = field(repr=False)
    active: bool = True

    @property
    def role(self) -> Role:
        return self.profile.role

    def can(self, capability: Capability) -> bool:
        return self.active and can(self.profile.role, capability)

    def require(self, capability: Capability) -> None:
        if not self.active:
            raise PermissionDenied("You are signed out.")
        if not can(self.profile.role, capability):
            LOGGER.warning(
                "Denied %s to %s (role=%s)", capability.value, self.profile.email, self.profile.role.value
            )
            raise PermissionDenied("You do not have permission to perform this action.")


def sign_in(backend, email: str, password: str) -> Session | None:
    """Return a Session, or None when the credentials are rejected."""
    email = email.strip().lower()
    if not email or not password:
        raise ValidationError("Please enter your email and password")
    profile = backend.sign_in(email, password)
    if profile is None:
        LOGGER.warning("Failed sign-in for %s", email)
        return None
    LOGGER.info("Signed in %s (role=%s)", profile.email, profile.role.value)
    return Session(profile=profile, backend=backend)


def sign_out(session: Session) -> None:
    if not session.active:
        return
    try:
        session.backend.sign_out()
    finally:
        session.active = False
        LOGGER.info("Signed out %s", session.profile.email)


def sign_up(backend, email: str, password: str, full_name: str) -> Profile:
    email = email.strip().lower()
    full_name = full_name.strip()
    if not email or not password or not full_name:
        raise ValidationError("Please fill in all required fields")
    if not utils.is_valid_email(email):
        raise ValidationError("Please enter a valid email address")
    if len(password) < utils.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {utils.MIN_PASSWORD_LENGTH} characters.")
    profile = backend.sign_up(email, password, full_name)
    LOGGER.info("Registered %s", profile.email)
    return profile


def change_password(session: Session, new1: str, new2: str) -> None:
    errors = utils.validate_new_password(new1, new2)
    if errors:
        raise ValidationError(errors[0])
    session.backend.change_password(session.profile.id, new1)
    LOGGER.info("Password changed for %s", session.profile.email)


def must_change_password(session: Session) -> bool:
    return session.backend.needs_password_change(session.profile.id)
