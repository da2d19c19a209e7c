"""Membership lifecycle: create, lookup, extend and cancel."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

import auth
import membership
import store
import utils
from errors import BackendError, PermissionDenied, ValidationError
from models import Duration, Membership, MembershipStatus


@pytest.mark.parametrize("duration", list(Duration))
def test_create_sets_end_date_from_duration(admin_session, duration: Duration) -> None:
    start = date(2024, 1, 31)

    created = membership.create_membership(
        admin_session, "Ann Lee", "ann@example.com", "555-0100", duration, start=start
    )

    assert created.start_date == start
    assert created.end_date == utils.add_months(start, duration.months)
    assert created.status is MembershipStatus.ACTIVE
    assert created.created_by == admin_session.profile.id
    assert created.membership_number.startswith("M")


def test_create_defaults_start_to_today(admin_session) -> None:
    created = membership.create_membership(admin_session, "Ann Lee", "ann@example.com", "555-0100", "6m")

    assert created.start_date == date.today()
    assert created.end_date == utils.add_months(date.today(), 6)


@pytest.mark.parametrize(
    "name, email, phone",
    [("", "ann@example.com", "555"), ("Ann", "  ", "555"), ("Ann", "ann@example.com", "")],
)
def test_create_requires_identity_fields(admin_session, name: str, email: str, phone: str) -> None:
    with pytest.raises(ValidationError, match="required fields"):
        membership.create_membership(admin_session, name, email, phone, "1y")


def test_create_rejects_unknown_duration(admin_session) -> None:
    with pytest.raises(ValidationError):
        membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "3m")


def test_duplicate_membership_number_surfaces_backend_error(admin_session, monkeypatch) -> None:
    monkeypatch.setattr(utils, "generate_membership_number", lambda now_ms=None: "M00000001")
    membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "6m")

    with pytest.raises(BackendError, match="UNIQUE"):
        membership.create_membership(admin_session, "Bob", "bob@example.com", "556", "6m")


def test_lookup_returns_exact_match(admin_session) -> None:
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "1y")

    found = membership.lookup_membership(admin_session, f"  {created.membership_number} ")

    assert found == created
    assert membership.lookup_membership(admin_session, created.membership_number[:-1]) is None


def test_lookup_nonexistent_is_not_found(admin_session) -> None:
    assert membership.lookup_membership(admin_session, "nonexistent") is None


def test_lookup_requires_a_number(admin_session) -> None:
    with pytest.raises(ValidationError, match="membership number"):
        membership.lookup_membership(admin_session, "   ")


@pytest.mark.parametrize("duration", list(Duration))
def test_extend_adds_to_current_end_date(admin_session, duration: Duration) -> None:
    created = membership.create_membership(
        admin_session, "Ann", "ann@example.com", "555", "6m", start=date(2024, 2, 29)
    )

    extended = membership.extend_membership(admin_session, created, duration)

    assert extended.end_date == utils.add_months(created.end_date, duration.months)
    assert extended.status is MembershipStatus.ACTIVE
    assert extended.start_date == created.start_date


def test_extend_lapsed_membership_counts_from_old_end_date(admin_session) -> None:
    start = date.today() - timedelta(days=800)
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "1y", start=start)
    assert membership.effective_status(created) is MembershipStatus.EXPIRED

    extended = membership.extend_membership(admin_session, created, "6m")

    assert extended.end_date == utils.add_months(created.end_date, 6)
    assert extended.status is MembershipStatus.ACTIVE


def test_cancel_keeps_end_date(admin_session) -> None:
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "2y")

    cancelled = membership.cancel_membership(admin_session, created)

    assert cancelled.status is MembershipStatus.CANCELLED
    assert cancelled.end_date == created.end_date
    stored = membership.lookup_membership(admin_session, created.membership_number)
    assert stored.status is MembershipStatus.CANCELLED


def test_cancelled_membership_cannot_be_extended_or_cancelled_again(admin_session) -> None:
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "6m")
    cancelled = membership.cancel_membership(admin_session, created)

    with pytest.raises(ValidationError):
        membership.extend_membership(admin_session, cancelled, "1y")
    with pytest.raises(ValidationError):
        membership.cancel_membership(admin_session, cancelled)


def test_user_role_cannot_mutate_memberships(admin_session, user_session) -> None:
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "6m")

    with pytest.raises(PermissionDenied):
        membership.create_membership(user_session, "Bob", "bob@example.com", "556", "6m")
    with pytest.raises(PermissionDenied):
        membership.extend_membership(user_session, created, "1y")
    with pytest.raises(PermissionDenied):
        membership.cancel_membership(user_session, created)

    # reading is allowed for both roles
    assert membership.lookup_membership(user_session, created.membership_number) == created


def test_effective_status() -> None:
    today = date(2025, 6, 1)
    values = membership.new_membership_values(
        "Ann", "ann@example.com", "555", "6m", start=date(2024, 1, 1), now_ms=1
    )
    lapsed = Membership.from_row({"id": "1", "created_by": None, **values})

    assert membership.effective_status(lapsed, today) is MembershipStatus.EXPIRED
    assert membership.effective_status(lapsed, date(2024, 7, 1)) is MembershipStatus.ACTIVE


def test_backends_on_different_files_stay_separate(tmp_path, admin_session) -> None:
    other = store.SqliteBackend(tmp_path / "other.db", "admin@example.com", "admin123")

    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "6m")

    other_session = auth.sign_in(other, "admin@example.com", "admin123")
    assert other_session.profile.id != admin_session.profile.id
    assert store.list_memberships(other_session) == []
    assert store.list_memberships(admin_session) == [created]


def test_stale_copy_cannot_revive_a_cancelled_membership(admin_session) -> None:
    created = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "6m")
    membership.cancel_membership(admin_session, created)

    with pytest.raises(ValidationError, match="Cancelled"):
        membership.extend_membership(admin_session, created, "1y")

    stored = membership.lookup_membership(admin_session, created.membership_number)
    assert stored.status is MembershipStatus.CANCELLED
    assert stored.end_date == created.end_date


def test_permission_is_checked_before_input(user_session) -> None:
    with pytest.raises(PermissionDenied):
        membership.create_membership(user_session, "", "", "", "3m")
