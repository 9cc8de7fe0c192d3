"""
services/suggestion_service.py — Description suggestions for the entry form.

Suggestions come from the ledger's own history first, then from a fixed list
of everyday expense names.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitify.app.errors import AppError, ErrorCode
from splitify.app.models.ledger import Ledger
from splitify.app.models.transaction import Transaction

COMMON_SUGGESTIONS: tuple[str, ...] = (
    "Groceries", "Dinner", "Lunch", "Coffee", "Gas", "Uber", "Movie tickets",
    "Shopping", "Restaurant", "Fast food", "Pharmacy", "Utilities", "Internet",
    "Phone bill", "Subscription", "Parking", "Hotel", "Flight", "Train ticket",
)

MIN_QUERY_LENGTH = 2


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


def previous_descriptions(descriptions: Iterable[str], history_limit: int = 20) -> list[str]:
    """
    Normalised, de-duplicated history: lowercased, trimmed, longer than two
    characters, first occurrence wins, at most `history_limit` entries.
    """
    seen: dict[str, None] = {}
    for raw in descriptions:
        desc = (raw or "").lower().strip()
        if len(desc) > 2:
            seen.setdefault(desc, None)
    return list(seen)[:history_limit]


def suggest_descriptions(
        descriptions: Iterable[str],
        query: str,
        limit: int = 5,
        history_limit: int = 20,
) -> list[str]:
    """Returns up to `limit` suggestions containing `query` but not equal to it."""
    if len(query or "") < MIN_QUERY_LENGTH:
        return []

    needle = query.lower()
    matching_previous = [
        desc for desc in previous_descriptions(descriptions, history_limit)
        if needle in desc and desc != needle
    ]
    matching_common = [
        s for s in COMMON_SUGGESTIONS
        if needle in s.lower() and s.lower() != needle
    ]
    return (matching_previous + matching_common)[:limit]


def get_suggestions(
        ledger_id: int,
        query: str,
        session: Session,
        limit: int = 5,
        history_limit: int = 20,
) -> list[str]:
    """Suggestions for a ledger, using its transactions newest first as history."""
    _get_ledger_or_404(ledger_id, session)
    stmt = (
        select(Transaction.description)
        .where(Transaction.ledger_id == ledger_id)
        .order_by(Transaction.created_at.desc(), Transaction.id)
    )
    history = session.execute(stmt).scalars().all()
    return suggest_descriptions(history, query, limit=limit, history_limit=history_limit)
