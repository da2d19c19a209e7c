"""Transaction ledger: recording entries and computing the balance."""

from __future__ import annotations

from datetime import date

import pytest

import ledger
import membership
from errors import PermissionDenied, ValidationError
from models import Transaction, TransactionType


def _txn(transaction_type: str, amount: float) -> Transaction:
    return Transaction(
        id=transaction_type,
        membership_id=None,
        transaction_type=TransactionType(transaction_type),
        amount=amount,
        description="test",
        transaction_date=date(2024, 5, 1),
    )


def test_compute_balance_subtracts_refunds() -> None:
    transactions = [_txn("payment", 100), _txn("refund", 30), _txn("extension", 50)]

    assert ledger.compute_balance(transactions) == pytest.approx(120)


def test_compute_balance_of_nothing_is_zero() -> None:
    assert ledger.compute_balance([]) == 0


@pytest.mark.parametrize("amount", [0, -5, "0", "-5", "ten"])
def test_record_rejects_non_positive_amounts(admin_session, amount) -> None:
    with pytest.raises(ValidationError):
        ledger.record_transaction(admin_session, None, "payment", amount, "Monthly fee")

    assert ledger.list_transactions(admin_session) == []


def test_record_accepts_decimal_amount(admin_session) -> None:
    recorded = ledger.record_transaction(admin_session, None, "payment", 10.5, "Locker rental")

    assert recorded.amount == pytest.approx(10.5)
    assert recorded.transaction_type is TransactionType.PAYMENT
    assert recorded.membership_id is None
    assert recorded.transaction_date == date.today()
    assert recorded.created_by == admin_session.profile.id
    assert ledger.list_transactions(admin_session) == [recorded]


def test_record_requires_description(admin_session) -> None:
    with pytest.raises(ValidationError, match="required fields"):
        ledger.record_transaction(admin_session, None, "payment", "20", "   ")


def test_record_links_membership_by_number(admin_session) -> None:
    member = membership.create_membership(admin_session, "Ann", "ann@example.com", "555", "1y")

    linked = ledger.record_transaction(admin_session, member.membership_number, "payment", "99.99", "Annual")
    unlinked = ledger.record_transaction(admin_session, "M-missing", "refund", "5", "Goodwill")

    assert linked.membership_id == member.id
    assert unlinked.membership_id is None


def test_refund_amount_is_stored_positive(admin_session) -> None:
    refund = ledger.record_transaction(admin_session, None, TransactionType.REFUND, "30", "Refund")

    assert refund.amount == pytest.approx(30)
    assert refund.signed_amount == pytest.approx(-30)


def test_list_orders_by_transaction_date_descending(admin_session) -> None:
    old = ledger.record_transaction(
        admin_session, None, "payment", "10", "Old", transaction_date=date(2024, 1, 5)
    )
    new = ledger.record_transaction(
        admin_session, None, "payment", "20", "New", transaction_date=date(2024, 3, 5)
    )
    middle = ledger.record_transaction(
        admin_session, None, "extension", "15", "Middle", transaction_date=date(2024, 2, 5)
    )

    assert [t.id for t in ledger.list_transactions(admin_session)] == [new.id, middle.id, old.id]


def test_user_role_can_read_but_not_record(admin_session, user_session) -> None:
    ledger.record_transaction(admin_session, None, "payment", "100", "Fee")

    with pytest.raises(PermissionDenied):
        ledger.record_transaction(user_session, None, "payment", "100", "Fee")

    assert len(ledger.list_transactions(user_session)) == 1
