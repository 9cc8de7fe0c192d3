"""
services/transaction_service.py — Transaction entry, common-expense splitting
and batch application.

Common expenses are never stored as one row. split_common_expense() expands
one entry into a share per known person and apply_batch() writes the whole
set inside a single SAVEPOINT, so a reader never observes half a split.

Share arithmetic:
  - share = total / N in Decimal, quantized to SHARE_QUANTUM (10 dp,
    ROUND_HALF_EVEN). Every share gets the identical amount.
  - No remainder redistribution: N * share may differ from total by at most
    N * SHARE_QUANTUM / 2. Balances are computed from the stored shares, so
    the drift is consistent across every reconciliation pass.

Layer rules:
  - No Flask imports. Receives plain values and a SQLAlchemy session.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date as _date
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Callable, Iterable

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from splitify.app.errors import (
    AppError,
    EmptyParticipantSetError,
    ErrorCode,
    InvalidAmountError,
)
from splitify.app.models.ledger import Ledger
from splitify.app.models.person import Person
from splitify.app.models.transaction import (
    MAX_AMOUNT,
    Category,
    Transaction,
    TransactionType,
)
from splitify.app.services import person_service

logger = logging.getLogger(__name__)

SHARE_QUANTUM = Decimal("1E-10")
COMMON_SPLIT_SUFFIX = " (Common Split)"


def _uuid_str() -> str:
    return str(uuid.uuid4())


# ── Amount parsing ─────────────────────────────────────────────────────────

def parse_amount(raw) -> Decimal:
    """
    Parses a user-supplied amount into a positive, finite Decimal.

    Accepts str, int, Decimal and float (floats go through str() so 0.1
    becomes Decimal("0.1"), not its binary expansion).

    Raises:
        InvalidAmountError -- missing, non-numeric, non-finite, not positive,
                              or too large for the amount column.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmountError("Amount is required.")

    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            raise InvalidAmountError("Amount is required.")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(f"{raw!r} is not a valid amount.") from None

    if not value.is_finite():
        raise InvalidAmountError(f"{raw!r} is not a finite amount.")
    if value <= 0:
        raise InvalidAmountError("Amount must be greater than zero.")
    if value >= MAX_AMOUNT:
        raise InvalidAmountError(f"Amount must be less than {MAX_AMOUNT:,.0f}.")
    return value


# ── Expense splitter ───────────────────────────────────────────────────────

def split_common_expense(
        amount,
        description: str,
        date: str,
        people: Iterable,
        *,
        credit_card_id: str | None = None,
        statement_month: int | None = None,
        statement_year: int | None = None,
        id_factory: Callable[[], str] = _uuid_str,
) -> list[dict]:
    """
    Expands a common expense into one personal share per person.

    Args:
        amount:      Total to split. Parsed with parse_amount().
        description: Stored verbatim with COMMON_SPLIT_SUFFIX appended.
                     An empty description is valid.
        date:        Copied to every share unchanged.
        people:      Objects with an `id` attribute, in the order shares
                     should be produced.
        id_factory:  Source of unique identifiers. Called once for the split
                     group and once per share.

    Returns:
        One transaction dict per person, in person order. Every dict has
        type=expense, category=personal, is_common_split=True and the same
        amount and split_group_id.

    Raises:
        InvalidAmountError       -- amount is not a positive finite number.
        EmptyParticipantSetError -- people is empty.
    """
    total = parse_amount(amount)

    people = list(people)
    if not people:
        raise EmptyParticipantSetError()

    share = (total / Decimal(len(people))).quantize(SHARE_QUANTUM, rounding=ROUND_HALF_EVEN)
    split_group_id = id_factory()
    shared_description = f"{description or ''}{COMMON_SPLIT_SUFFIX}"

    batch = [
        {
            "id": id_factory(),
            "amount": share,
            "description": shared_description,
            "date": date or "",
            "type": TransactionType.EXPENSE,
            "category": Category.PERSONAL,
            "spent_by": person.id,
            "is_common_split": True,
            "split_group_id": split_group_id,
            "credit_card_id": credit_card_id,
            "statement_month": statement_month,
            "statement_year": statement_year,
        }
        for person in people
    ]

    logger.debug(
        "Split %s between %d people: %s each (group %s)",
        total, len(people), share, split_group_id,
    )
    return batch


# ── Batch application ──────────────────────────────────────────────────────

def apply_batch(ledger_id: int, batch: list[dict], session: Session) -> list[Transaction]:
    """
    Writes every transaction in `batch` or none of them.

    The rows are added inside a SAVEPOINT; any database error rolls the
    savepoint back and surfaces as BATCH_REJECTED (500). The enclosing
    request transaction is left usable and is committed by the route.

    Returns:
        The persisted Transaction rows, in batch order.
    """
    rows = [Transaction(ledger_id=ledger_id, **record) for record in batch]

    try:
        with session.begin_nested():
            session.add_all(rows)
            session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Rejected batch of %d transaction(s) for ledger %s", len(rows), ledger_id)
        raise AppError(
            ErrorCode.BATCH_REJECTED,
            "The transactions could not be saved. Nothing was recorded.",
            500,
        ) from exc

    logger.info("Applied batch of %d transaction(s) to ledger %s", len(rows), ledger_id)
    return rows


# ── Private helpers ────────────────────────────────────────────────────────

def _get_ledger_or_404(ledger_id: int, session: Session) -> Ledger:
    """Returns the Ledger or raises LEDGER_NOT_FOUND (404)."""
    ledger = session.get(Ledger, ledger_id)
    if ledger is None:
        raise AppError(
            ErrorCode.LEDGER_NOT_FOUND,
            f"Ledger {ledger_id} does not exist.",
            404,
        )
    return ledger


def _validate_spender(spent_by: str, ledger_id: int, people: list[Person]) -> None:
    """Raises UNKNOWN_SPENDER (422) if spent_by is not a person in the ledger."""
    if spent_by not in {p.id for p in people}:
        raise AppError(
            ErrorCode.UNKNOWN_SPENDER,
            f"Person {spent_by} is not part of ledger {ledger_id}.",
            422,
            field="spent_by",
        )


# ── Public service functions ───────────────────────────────────────────────

def record_transaction(ledger_id: int, data: dict, session: Session) -> list[Transaction]:
    """
    Records one entry from TransactionEntrySchema.

    - A common expense is split across every person in the ledger and
      applied as one batch.
    - A personal expense or a payment is applied as a batch of one after
      checking that spent_by belongs to the ledger.

    Returns:
        The created Transaction rows (N for a common expense, else 1).
    """
    people = person_service.get_people(ledger_id, session)

    txn_type: TransactionType = data["type"]
    category: Category = data.get("category", Category.PERSONAL)
    period = {
        "credit_card_id": data.get("credit_card_id"),
        "statement_month": data.get("statement_month"),
        "statement_year": data.get("statement_year"),
    }

    if txn_type == TransactionType.EXPENSE and category == Category.COMMON:
        batch = split_common_expense(
            data["amount"],
            data.get("description", ""),
            data.get("date", ""),
            people,
            **period,
        )
        return apply_batch(ledger_id, batch, session)

    spent_by = data["spent_by"]
    _validate_spender(spent_by, ledger_id, people)

    record = {
        "id": _uuid_str(),
        "amount": parse_amount(data["amount"]),
        "description": data.get("description", ""),
        "date": data.get("date", ""),
        "type": txn_type,
        # Payments carry no meaningful category; store the neutral default.
        "category": Category.PERSONAL,
        "spent_by": spent_by,
        "is_common_split": False,
        "split_group_id": None,
        **period,
    }
    return apply_batch(ledger_id, [record], session)


def _category_clause(category: Category):
    """A common-split share reads as "common"; an unsplit expense as "personal"."""
    if category == Category.COMMON:
        return Transaction.is_common_split.is_(True)
    return and_(
        Transaction.type == TransactionType.EXPENSE,
        Transaction.is_common_split.is_(False),
    )


def _history_date_key(txn: Transaction) -> tuple[int, int, int]:
    """
    Sort key for the free-text date column.

    An ISO date sorts by itself. A bare day of month ("9", "30") sorts
    numerically within its statement period. Anything else sorts last.
    """
    text = (txn.date or "").strip()
    if text.isdigit():
        return (txn.statement_year or 0, txn.statement_month or 0, int(text))
    try:
        parsed = _date.fromisoformat(text)
    except ValueError:
        return (0, 0, 0)
    return (parsed.year, parsed.month, parsed.day)


def list_transactions(
        ledger_id: int,
        session: Session,
        txn_type: TransactionType | None = None,
        month: int | None = None,
        year: int | None = None,
        category: Category | None = None,
        spent_by: str | None = None,
        search: str = "",
) -> list[Transaction]:
    """
    Returns a ledger's transaction history, newest first.

    Rows are ordered by their date (see _history_date_key), then by creation
    time, newest first. Optional filters narrow by type, category, spender,
    statement period and a case-insensitive search over description,
    spender name and category.
    """
    _get_ledger_or_404(ledger_id, session)

    stmt = select(Transaction).where(Transaction.ledger_id == ledger_id)
    if txn_type is not None:
        stmt = stmt.where(Transaction.type == txn_type)
    if category is not None:
        stmt = stmt.where(_category_clause(category))
    if spent_by is not None:
        stmt = stmt.where(Transaction.spent_by == spent_by)
    if month is not None:
        stmt = stmt.where(Transaction.statement_month == month)
    if year is not None:
        stmt = stmt.where(Transaction.statement_year == year)

    needle = (search or "").strip().lower()
    if needle:
        stmt = stmt.outerjoin(
            Person,
            and_(Person.id == Transaction.spent_by, Person.ledger_id == ledger_id),
        )
        matches = [
            func.lower(Transaction.description).contains(needle, autoescape=True),
            func.lower(Person.name).contains(needle, autoescape=True),
        ]
        matches.extend(
            _category_clause(c) for c in Category if needle in c.value
        )
        stmt = stmt.where(or_(*matches))

    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id)
    rows = list(session.execute(stmt).scalars().all())
    # Stable: rows sharing a date keep the newest-created-first order.
    rows.sort(key=_history_date_key, reverse=True)
    return rows


def get_ledger_transactions(
        ledger_id: int,
        session: Session,
        month: int | None = None,
        year: int | None = None,
) -> list[Transaction]:
    """
    Returns transactions in stable insertion order, the order the balance
    reconciler folds them in.
    """
    stmt = select(Transaction).where(Transaction.ledger_id == ledger_id)
    if month is not None:
        stmt = stmt.where(Transaction.statement_month == month)
    if year is not None:
        stmt = stmt.where(Transaction.statement_year == year)
    stmt = stmt.order_by(Transaction.created_at, Transaction.id)
    return list(session.execute(stmt).scalars().all())


def delete_transaction(ledger_id: int, transaction_id: str, session: Session) -> None:
    """
    Hard-deletes one transaction. Edits are modelled as delete + re-create.

    Deleting a single share of a common split is allowed; the remaining
    shares stay as they are.
    """
    _get_ledger_or_404(ledger_id, session)
    txn = session.get(Transaction, transaction_id)
    if txn is None or txn.ledger_id != ledger_id:
        raise AppError(
            ErrorCode.TRANSACTION_NOT_FOUND,
            f"Transaction {transaction_id} does not exist in ledger {ledger_id}.",
            404,
        )
    session.delete(txn)
    session.flush()


def delete_split_group(ledger_id: int, split_group_id: str, session: Session) -> int:
    """
    Deletes every share of one common split together.

    Returns:
        The number of shares removed.
    """
    _get_ledger_or_404(ledger_id, session)
    stmt = select(Transaction).where(
        Transaction.ledger_id == ledger_id,
        Transaction.split_group_id == split_group_id,
    )
    shares = list(session.execute(stmt).scalars().all())
    if not shares:
        raise AppError(
            ErrorCode.SPLIT_NOT_FOUND,
            f"Split {split_group_id} does not exist in ledger {ledger_id}.",
            404,
        )

    with session.begin_nested():
        for share in shares:
            session.delete(share)
    session.flush()
    return len(shares)


# ── Serialization ──────────────────────────────────────────────────────────
# Pure data-shaping. Amounts as strings.

def serialize_transaction(txn: Transaction) -> dict:
    return {
        "id": txn.id,
        "ledger_id": txn.ledger_id,
        "amount": str(txn.amount),
        "description": txn.description,
        "date": txn.date,
        "type": txn.type.value,
        "category": txn.category.value,
        "spent_by": txn.spent_by,
        "is_common_split": txn.is_common_split,
        "split_group_id": txn.split_group_id,
        "credit_card_id": txn.credit_card_id,
        "statement_month": txn.statement_month,
        "statement_year": txn.statement_year,
        "created_at": txn.created_at.isoformat(),
    }
