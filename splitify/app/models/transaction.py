"""
models/transaction.py — Transaction table definition.

Key design points:
  - Transactions are immutable once written. An edit is a delete followed by
    a new insert; there is no updated_at column.
  - `amount` uses Numeric(20, 10) — never Float. Common-split shares carry up
    to 10 decimal places (see transaction_service.SHARE_QUANTUM) and every
    amount stays below MAX_AMOUNT, the column's integer-digit limit.
  - `spent_by` is NOT a foreign key. Removing a person leaves their
    transactions behind as orphaned references, which the balance
    reconciler reports as warnings instead of failing.
  - `split_group_id` ties together every share produced by one common-expense
    split so the batch can be inspected or deleted as a unit.
  - TransactionType and Category are Python enums so schemas and services can
    import them without repeating string literals.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitify.app.extensions import db
from splitify.app.models.person import new_id

# Numeric(20, 10) leaves ten integer digits.
MAX_AMOUNT = Decimal("1E10")


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'payment'), not names ('PAYMENT')."""
    return [member.value for member in enum_cls]


class TransactionType(str, enum.Enum):
    EXPENSE = "expense"
    PAYMENT = "payment"


class Category(str, enum.Enum):
    PERSONAL = "personal"
    COMMON   = "common"


class Transaction(db.Model):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
        CheckConstraint(
            "statement_month IS NULL OR (statement_month BETWEEN 1 AND 12)",
            name="ck_transactions_statement_month_range",
        ),
        Index("idx_transactions_ledger_period", "ledger_id", "statement_year", "statement_month"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # ON DELETE CASCADE — transactions are owned by their ledger.
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("ledgers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(20, 10),
        nullable=False,
    )

    # Free text. May be empty; never interpreted by the reconciler.
    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

    # Day of month ("14") or an ISO date. Opaque to balance math.
    date: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="",
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            name="transaction_type_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    category: Mapped[Category] = mapped_column(
        Enum(
            Category,
            name="transaction_category_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=Category.PERSONAL,
    )

    # Person id of whoever incurred the expense or made the payment.
    spent_by: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )

    is_common_split: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
    )

    split_group_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )

    # Opaque association to a credit card held by another system.
    credit_card_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    statement_month: Mapped[int | None] = mapped_column(Integer, nullable=True)

    statement_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    ledger: Mapped["Ledger"] = relationship(  # noqa: F821
        "Ledger",
        back_populates="transactions",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Transaction id={self.id} "
            f"type={self.type} "
            f"amount={self.amount} "
            f"spent_by={self.spent_by}>"
        )
