"""
reports.py
Read-and-aggregate helpers behind the Reports and Transactions screens.
Everything is recomputed from a fresh fetch; nothing is cached.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

import pandas as pd

import utils
from membership import effective_status
from models import Membership, MembershipStatus, Transaction
from store import MEMBERSHIP_COLUMNS, TRANSACTION_COLUMNS

MEMBERSHIP_TABLE_COLUMNS = {
    "membership_number": "Member #",
    "full_name": "Name",
    "email": "Email",
    "phone": "Phone",
    "duration": "Duration",
    "end_date": "End Date",
    "status": "Status",
}

TRANSACTION_TABLE_COLUMNS = {
    "transaction_date": "Date",
    "transaction_type": "Type",
    "description": "Description",
    "signed_amount": "Amount",
}


def status_counts(memberships: Iterable[Membership], today: date | None = None) -> dict[str, int]:
    counts = {"total": 0, "active": 0, "cancelled": 0, "expired": 0}
    for m in memberships:
        counts["total"] += 1
        counts[effective_status(m, today).value] += 1
    return counts


def memberships_frame(memberships: Iterable[Membership], today: date | None = None) -> pd.DataFrame:
    rows = []
    for m in memberships:
        row = m.as_dict()
        row["duration"] = m.duration.label
        row["status"] = effective_status(m, today).value
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(MEMBERSHIP_COLUMNS))
    return df[list(MEMBERSHIP_TABLE_COLUMNS)].rename(columns=MEMBERSHIP_TABLE_COLUMNS)


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [{**t.as_dict(), "signed_amount": t.signed_amount} for t in transactions]
    df = pd.DataFrame(rows, columns=[*TRANSACTION_COLUMNS, "signed_amount"])
    return df[list(TRANSACTION_TABLE_COLUMNS)].rename(columns=TRANSACTION_TABLE_COLUMNS)


def revenue_by_month(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {"month": t.transaction_date.strftime("%Y-%m"), "revenue": t.signed_amount}
        for t in transactions
    ]
    if not rows:
        return pd.DataFrame(columns=["month", "revenue"])
    df = pd.DataFrame(rows).groupby("month", as_index=False)["revenue"].sum()
    return df.sort_values("month", ascending=False).reset_index(drop=True)


def memberships_csv(memberships: Iterable[Membership]) -> bytes:
    return utils.records_to_csv_bytes(memberships, list(MEMBERSHIP_COLUMNS))


def transactions_csv(transactions: Iterable[Transaction]) -> bytes:
    return utils.records_to_csv_bytes(transactions, list(TRANSACTION_COLUMNS))


def status_badge(status: MembershipStatus | str) -> str:
    colour = {"active": "green", "cancelled": "red"}.get(MembershipStatus(status).value, "gray")
    return f":{colour}[{MembershipStatus(status).value}]"
