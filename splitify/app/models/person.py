"""
models/person.py — Person table definition.

A person is a participant in one ledger. Identifiers are random UUID4 strings
assigned at creation time, never derived from the clock.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitify.app.extensions import db


def new_id() -> str:
    """Returns a fresh random 128-bit identifier in string form."""
    return str(uuid.uuid4())


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'member'), not names ('MEMBER')."""
    return [member.value for member in enum_cls]


class Role(str, enum.Enum):
    OWNER  = "owner"
    MEMBER = "member"
    GUEST  = "guest"


class Person(db.Model):
    __tablename__ = "people"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_people_name_nonempty",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # ON DELETE CASCADE — people are owned by their ledger.
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("ledgers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # At most one card owner per ledger; person_service keeps this true.
    is_card_owner: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
    )

    role: Mapped[Role | None] = mapped_column(
        Enum(
            Role,
            name="person_role_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=True,
    )

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    ledger: Mapped["Ledger"] = relationship(  # noqa: F821
        "Ledger",
        back_populates="people",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Person id={self.id} name={self.name!r} card_owner={self.is_card_owner}>"
