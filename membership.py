"""
membership.py
Membership lifecycle: create, lookup, extend, cancel.

End dates use calendar month addition (utils.add_months). Extending always
starts from the membership's current end date, even when it has lapsed.
"""

from __future__ import annotations

from datetime import date

import db
import store
import utils
from auth import Session
from errors import ValidationError
from logging_utils import get_logger
from models import Capability, Duration, Membership, MembershipStatus

LOGGER = get_logger(__name__)


def effective_status(membership: Membership, today: date | None = None) -> MembershipStatus:
    """Stored status, except a lapsed active membership reads as expired."""
    today = today or date.today()
    if membership.status is MembershipStatus.ACTIVE and membership.end_date < today:
        return MembershipStatus.EXPIRED
    return membership.status


def new_membership_values(
    full_name: str,
    email: str,
    phone: str,
    duration: Duration | str,
    start: date | None = None,
    now_ms: int | None = None,
) -> dict:
    errors = utils.validate_membership_inputs(full_name, email, phone)
    if errors:
        raise ValidationError(errors[0])
    try:
        duration = Duration(duration)
    except ValueError:
        raise ValidationError(f"Unsupported membership duration: {duration}") from None

    start = start or date.today()
    stamp = db.now_iso()
    return {
        "membership_number": utils.generate_membership_number(now_ms),
        "full_name": full_name.strip(),
        "email": email.strip(),
        "phone": phone.strip(),
        "duration": duration.value,
        "start_date": start.isoformat(),
        "end_date": utils.calc_end_date(start, duration).isoformat(),
        "status": MembershipStatus.ACTIVE.value,
        "created_at": stamp,
        "updated_at": stamp,
    }


def create_membership(
    session: Session,
    full_name: str,
    email: str,
    phone: str,
    duration: Duration | str,
    start: date | None = None,
) -> Membership:
    session.require(Capability.MANAGE_MEMBERSHIPS)
    values = new_membership_values(full_name, email, phone, duration, start=start)
    membership = store.insert_membership(session, values)
    LOGGER.info(
        "Created membership %s (%s) ending %s",
        membership.membership_number,
        membership.duration.value,
        membership.end_date,
    )
    return membership


def lookup_membership(session: Session, membership_number: str) -> Membership | None:
    """Exact match on the membership number; None when there is no such membership."""
    number = (membership_number or "").strip()
    if not number:
        raise ValidationError("Please enter a membership number")
    return store.find_membership(session, number)


def extended_end_date(membership: Membership, duration: Duration | str) -> date:
    return utils.calc_end_date(membership.end_date, duration)


def extend_membership(session: Session, membership: Membership, duration: Duration | str) -> Membership:
    session.require(Capability.MANAGE_MEMBERSHIPS)
    if membership.status is MembershipStatus.CANCELLED:
        raise ValidationError("Cancelled memberships cannot be extended")
    try:
        duration = Duration(duration)
    except ValueError:
        raise ValidationError(f"Unsupported membership duration: {duration}") from None

    new_end = extended_end_date(membership, duration)
    updated = store.update_membership(
        session,
        membership.id,
        {
            "end_date": new_end.isoformat(),
            "status": MembershipStatus.ACTIVE.value,
            "updated_at": db.now_iso(),
        },
    )
    LOGGER.info(
        "Extended membership %s by %s: %s -> %s",
        membership.membership_number,
        duration.value,
        membership.end_date,
        updated.end_date,
    )
    return updated


def cancel_membership(session: Session, membership: Membership) -> Membership:
    session.require(Capability.MANAGE_MEMBERSHIPS)
    if membership.status is not MembershipStatus.ACTIVE:
        raise ValidationError(f"Only active memberships can be cancelled (status: {membership.status.value})")
    updated = store.update_membership(
        session,
        membership.id,
        {"status": MembershipStatus.CANCELLED.value, "updated_at": db.now_iso()},
    )
    LOGGER.info("Cancelled membership %s", membership.membership_number)
    return updated
