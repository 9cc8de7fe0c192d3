"""
services/ledger_service.py — Ledger creation and lookup.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitify.app.errors import AppError, ErrorCode
from splitify.app.models.ledger import Ledger
from splitify.app.services.person_service import get_people, serialize_person


def _build_ledger_dict(ledger: Ledger) -> dict:
    return {
        "id": ledger.id,
        "name": ledger.name,
        "card_name": ledger.card_name,
        "last_four_digits": ledger.last_four_digits,
        "issuing_bank": ledger.issuing_bank,
        "created_at": ledger.created_at.isoformat(),
    }


def create_ledger(data: dict, session: Session) -> dict:
    """
    Creates an empty ledger.

    Args:
        data: Validated dict from CreateLedgerSchema.
    """
    ledger = Ledger(
        name=data["name"].strip(),
        card_name=data.get("card_name"),
        last_four_digits=data.get("last_four_digits"),
        issuing_bank=data.get("issuing_bank"),
    )
    session.add(ledger)
    session.flush()
    return {**_build_ledger_dict(ledger), "people": []}


def list_ledgers(session: Session) -> list[dict]:
    """Returns every ledger, oldest first, without people."""
    stmt = select(Ledger).order_by(Ledger.created_at.asc(), Ledger.id.asc())
    return [_build_ledger_dict(l) for l in session.execute(stmt).scalars().all()]


def get_ledger(ledger_id: int, session: Session) -> dict:
    """Returns one ledger with its people in the order they were added."""
    ledger = session.get(Ledger, ledger_id)
    if ledger is None:
        raise AppError(
            ErrorCode.LEDGER_NOT_FOUND,
            f"Ledger {ledger_id} does not exist.",
            404,
        )
    people = get_people(ledger_id, session)
    return {
        **_build_ledger_dict(ledger),
        "people": [serialize_person(p) for p in people],
    }
