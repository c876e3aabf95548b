# finance_api/ledger.py
"""
Transaction bookkeeping for a single user.

Every mutation adjusts the user's Summary row in the same database
transaction as the Transaction change, so the two commit or roll back
together. The Summary row is read with ``SELECT ... FOR UPDATE`` before it is
modified; on backends without row locks (SQLite) writers are serialized by
the database itself.
"""
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import Forbidden, InvalidInput, InvalidState, NotFound
from .models import TRANSACTION_TYPES, Summary, Transaction
from .schemas import SummaryTotals

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")  # Numeric(12, 2)
MAX_CATEGORY_LENGTH = 100
MAX_ID = 2 ** 63 - 1

# Plain decimal or exponent notation; no digit separators
_NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_amount(value) -> Decimal:
    """
    Converts a JSON number or numeric string into a positive amount in cents.

    Raises:
        InvalidInput: If the value is not numeric, not finite, not positive
            once rounded to cents, or too large to store.
    """
    # bool is an int subclass, but True is not an amount
    if value is None or isinstance(value, bool):
        raise InvalidInput("Invalid amount")

    if isinstance(value, str):
        text = value.strip()
        if not _NUMBER.fullmatch(text):
            raise InvalidInput("Invalid amount")
    elif isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        raise InvalidInput("Invalid amount")

    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        raise InvalidInput("Invalid amount")

    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        raise InvalidInput("Invalid amount")

    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise InvalidInput("Invalid amount")
    return amount


def parse_type(value) -> str:
    if not isinstance(value, str) or value not in TRANSACTION_TYPES:
        raise InvalidInput("Invalid transaction type")
    return value


def parse_category(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("Invalid category")
    category = value.strip()
    if len(category) > MAX_CATEGORY_LENGTH:
        raise InvalidInput("Invalid category")
    return category


def parse_transaction_id(value) -> int:
    """Path ids that are not integers cannot name a stored transaction."""
    if isinstance(value, int) and not isinstance(value, bool):
        transaction_id = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        transaction_id = int(value)
    else:
        raise NotFound("Transaction not found")
    if not 0 < transaction_id <= MAX_ID:
        raise NotFound("Transaction not found")
    return transaction_id


def _summary_for_update(db: Session, user_id: str) -> Optional[Summary]:
    return db.execute(
        select(Summary).where(Summary.user_id == user_id).with_for_update()
    ).scalar_one_or_none()


def _get_or_create_summary(db: Session, user_id: str) -> Summary:
    summary = _summary_for_update(db, user_id)
    if summary is not None:
        return summary

    summary = Summary(user_id=user_id, total_income=Decimal("0.00"), total_expenses=Decimal("0.00"))
    try:
        with db.begin_nested():
            db.add(summary)
    except IntegrityError:
        # A concurrent request created the row between our read and insert
        logger.info("Summary for user %s created concurrently, re-reading", user_id)
        summary = _summary_for_update(db, user_id)
        if summary is None:
            raise
    return summary


def _owned_transaction(db: Session, user_id: str, transaction_id) -> Transaction:
    transaction = db.get(Transaction, parse_transaction_id(transaction_id), with_for_update=True)
    if transaction is None:
        raise NotFound("Transaction not found")
    if transaction.user_id != user_id:
        raise Forbidden("Not authorized")
    return transaction


def _log_totals(stage: str, summary: Summary):
    logger.debug(
        "%s update -> user: %s, income: %s, expenses: %s",
        stage, summary.user_id, summary.total_income, summary.total_expenses,
    )


def create_transaction(db: Session, user_id: str, type_, amount, category) -> Tuple[Transaction, Summary]:
    """
    Records a new transaction and adds its amount to the user's summary,
    creating the summary on the user's first transaction.
    """
    type_ = parse_type(type_)
    amount = parse_amount(amount)
    category = parse_category(category)

    try:
        transaction = Transaction(user_id=user_id, type=type_, amount=amount, category=category)
        db.add(transaction)
        db.flush()

        summary = _get_or_create_summary(db, user_id)
        _log_totals("Before", summary)
        summary.adjust(type_, amount)
        db.commit()
    except Exception:
        db.rollback()
        raise

    _log_totals("After", summary)
    logger.info("Created %s transaction %s for user %s", type_, transaction.id, user_id)
    return transaction, summary


def update_transaction(
    db: Session, user_id: str, transaction_id, type_, amount, category
) -> Tuple[Transaction, Summary]:
    """
    Replaces a transaction's type, amount and category, moving its old amount
    out of the summary and the new amount in.

    The new values are validated the same way as on create.
    """
    type_ = parse_type(type_)
    amount = parse_amount(amount)
    category = parse_category(category)

    try:
        transaction = _owned_transaction(db, user_id, transaction_id)
        summary = _summary_for_update(db, user_id)
        if summary is None:
            raise InvalidState("Summary not found")

        _log_totals("Before", summary)
        summary.adjust(transaction.type, -transaction.amount)

        transaction.type = type_
        transaction.amount = amount
        transaction.category = category

        summary.adjust(type_, amount)
        db.commit()
    except Exception:
        db.rollback()
        raise

    _log_totals("After", summary)
    logger.info("Updated transaction %s for user %s", transaction_id, user_id)
    return transaction, summary


def delete_transaction(db: Session, user_id: str, transaction_id) -> Summary:
    """
    Removes a transaction and its amount from the summary. When the user has
    no transactions left both totals are set to exactly zero.
    """
    try:
        transaction = _owned_transaction(db, user_id, transaction_id)
        summary = _summary_for_update(db, user_id)
        if summary is None:
            raise InvalidState("Summary not found")

        _log_totals("Before", summary)
        summary.adjust(transaction.type, -transaction.amount)

        db.delete(transaction)
        db.flush()

        remaining = db.scalar(
            select(func.count()).select_from(Transaction).where(Transaction.user_id == user_id)
        )
        if not remaining:
            summary.reset()

        db.commit()
    except Exception:
        db.rollback()
        raise

    _log_totals("After", summary)
    logger.info("Deleted transaction %s for user %s", transaction_id, user_id)
    return summary


def get_summary(db: Session, user_id: str) -> SummaryTotals:
    # Read-only: a user without transactions gets zeros and no row is created
    summary = db.execute(
        select(Summary).where(Summary.user_id == user_id)
    ).scalar_one_or_none()
    if summary is None:
        return SummaryTotals()

    total_income = summary.total_income or Decimal("0")
    total_expenses = summary.total_expenses or Decimal("0")
    return SummaryTotals(
        total_income=float(total_income),
        total_expenses=float(total_expenses),
        balance=float(total_income - total_expenses),
    )


def list_transactions(db: Session, user_id: str) -> List[Transaction]:
    return list(
        db.execute(
            select(Transaction).where(Transaction.user_id == user_id).order_by(Transaction.id)
        ).scalars()
    )


def recompute_summary(db: Session, user_id: str) -> Summary:
    """
    Rebuilds a user's summary from the transactions table with an aggregate
    query, discarding whatever the incremental updates had accumulated.
    """
    try:
        rows = db.execute(
            select(Transaction.type, func.sum(Transaction.amount))
            .where(Transaction.user_id == user_id)
            .group_by(Transaction.type)
        ).all()
        totals = {t: Decimal(str(total or 0)).quantize(CENTS) for t, total in rows}

        summary = _get_or_create_summary(db, user_id)
        _log_totals("Before", summary)
        summary.total_income = totals.get("income", Decimal("0.00"))
        summary.total_expenses = totals.get("expense", Decimal("0.00"))
        db.commit()
    except Exception:
        db.rollback()
        raise

    _log_totals("After", summary)
    logger.info("Recomputed summary for user %s", user_id)
    return summary
