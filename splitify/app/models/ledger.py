"""
models/ledger.py — Ledger table definition.

A ledger is one tracked credit card: the people splitting its bill and the
transactions charged to it. No business logic here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitify.app.extensions import db


class Ledger(db.Model):
    __tablename__ = "ledgers"

    __table_args__ = (
        # Also enforced by the marshmallow schema; the schema is the primary gate.
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_ledgers_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    card_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    last_four_digits: Mapped[str | None] = mapped_column(String(4), nullable=True)

    issuing_bank: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    people: Mapped[list["Person"]] = relationship(  # noqa: F821
        "Person",
        back_populates="ledger",
        order_by="Person.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    transactions: Mapped[list["Transaction"]] = relationship(  # noqa: F821
        "Transaction",
        back_populates="ledger",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Ledger id={self.id} name={self.name!r}>"
