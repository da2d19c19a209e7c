"""
ledger.py
Transaction ledger: record entries (optionally tied to a membership) and
compute the signed balance. Amounts are stored positive; refunds subtract.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

import db
import store
import utils
from auth import Session
from errors import ValidationError
from logging_utils import get_logger
from models import Capability, Transaction, TransactionType

LOGGER = get_logger(__name__)


def compute_balance(transactions: Iterable[Transaction]) -> float:
    return sum((t.signed_amount for t in transactions), 0.0)


def record_transaction(
    session: Session,
    membership_number: str | None,
    transaction_type: TransactionType | str,
    amount,
    description: str,
    transaction_date: date | None = None,
) -> Transaction:
    session.require(Capability.RECORD_TRANSACTIONS)

    if not (description or "").strip():
        raise ValidationError("Please fill in all required fields")
    value = utils.parse_amount(amount)
    try:
        transaction_type = TransactionType(transaction_type)
    except ValueError:
        raise ValidationError(f"Unsupported transaction type: {transaction_type}") from None

    membership_id = None
    number = (membership_number or "").strip()
    if number:
        membership = store.find_membership(session, number)
        if membership is not None:
            membership_id = membership.id
        else:
            LOGGER.info("No membership %s; recording transaction unlinked", number)

    transaction = store.insert_transaction(
        session,
        {
            "membership_id": membership_id,
            "transaction_type": transaction_type.value,
            "amount": value,
            "description": description.strip(),
            "transaction_date": (transaction_date or date.today()).isoformat(),
            "created_at": db.now_iso(),
        },
    )
    LOGGER.info(
        "Recorded %s of %.2f (membership=%s)",
        transaction.transaction_type.value,
        transaction.amount,
        number or "-",
    )
    return transaction


def list_transactions(session: Session) -> list[Transaction]:
    """All transactions, newest transaction_date first."""
    return store.list_transactions(session)
