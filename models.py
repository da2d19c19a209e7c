"""
models.py
Domain types (roles, durations, statuses, dataclasses for rows).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Capability(str, Enum):
    MANAGE_MEMBERSHIPS = "manage_memberships"
    RECORD_TRANSACTIONS = "record_transactions"
    VIEW_REPORTS = "view_reports"
    VIEW_TRANSACTIONS = "view_transactions"


ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset(Capability),
    Role.USER: frozenset({Capability.VIEW_REPORTS, Capability.VIEW_TRANSACTIONS}),
}


class Duration(str, Enum):
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"
    TWO_YEARS = "2y"

    @property
    def months(self) -> int:
        return DURATION_MONTHS[self]

    @property
    def label(self) -> str:
        return DURATION_LABELS[self]


# Months added to a date for each duration class (used for end_date calculation)
DURATION_MONTHS = {
    Duration.SIX_MONTHS: 6,
    Duration.ONE_YEAR: 12,
    Duration.TWO_YEARS: 24,
}

DURATION_LABELS = {
    Duration.SIX_MONTHS: "6 Months",
    Duration.ONE_YEAR: "1 Year",
    Duration.TWO_YEARS: "2 Years",
}


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TransactionType(str, Enum):
    PAYMENT = "payment"
    REFUND = "refund"
    EXTENSION = "extension"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Hosted backends may return full timestamps for date columns
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Profile:
    id: str
    email: str
    full_name: str
    role: Role
    created_at: str | None = None

    @classmethod
    def from_row(cls, row) -> "Profile":
        return cls(
            id=str(row["id"]),
            email=row["email"],
            full_name=row["full_name"] or "",
            role=Role(row["role"]),
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class Membership:
    id: str
    membership_number: str
    full_name: str
    email: str
    phone: str
    duration: Duration
    start_date: date
    end_date: date
    status: MembershipStatus
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row) -> "Membership":
        return cls(
            id=str(row["id"]),
            membership_number=row["membership_number"],
            full_name=row["full_name"],
            email=row["email"],
            phone=row["phone"],
            duration=Duration(row["duration"]),
            start_date=_as_date(row["start_date"]),
            end_date=_as_date(row["end_date"]),
            status=MembershipStatus(row["status"]),
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "membership_number": self.membership_number,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "duration": self.duration.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class Transaction:
    id: str
    membership_id: str | None
    transaction_type: TransactionType
    amount: float  # always positive; refunds are subtracted at aggregation time
    description: str
    transaction_date: date
    created_by: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row) -> "Transaction":
        membership_id = row["membership_id"]
        return cls(
            id=str(row["id"]),
            membership_id=str(membership_id) if membership_id is not None else None,
            transaction_type=TransactionType(row["transaction_type"]),
            amount=float(row["amount"]),
            description=row["description"],
            transaction_date=_as_date(row["transaction_date"]),
            created_by=row["created_by"],
            created_at=row["created_at"],
        )

    @property
    def signed_amount(self) -> float:
        if self.transaction_type is TransactionType.REFUND:
            return -self.amount
        return self.amount

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "membership_id": self.membership_id,
            "transaction_type": self.transaction_type.value,
            "amount": self.amount,
            "description": self.description,
            "transaction_date": self.transaction_date.isoformat(),
            "created_by": self.created_by,
            "created_at": self.created_at,
        }
