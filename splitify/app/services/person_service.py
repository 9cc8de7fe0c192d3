"""
services/person_service.py — People in a ledger.

Rules:
  - The first person added to a ledger becomes the card owner unless the
    request says otherwise. A ledger has at most one card owner.
  - Making someone card owner clears the flag on everyone else.
  - The card owner cannot be removed while other people remain
    (CARD_OWNER_REMOVAL, 422).
  - Names are unique per ledger, compared case-insensitively after trim
    (DUPLICATE_PERSON_NAME, 409).
  - Removing a person leaves their transactions in place. The balance
    reconciler reports them as orphaned references.

Layer rules:
  - No Flask imports. Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from splitify.app.errors import AppError, ErrorCode
from splitify.app.models.ledger import Ledger
from splitify.app.models.person import Person, Role

logger = logging.getLogger(__name__)


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


def _get_person_or_404(ledger_id: int, person_id: str, session: Session) -> Person:
    """Returns the Person if it belongs to the ledger, else PERSON_NOT_FOUND (404)."""
    person = session.get(Person, person_id)
    if person is None or person.ledger_id != ledger_id:
        raise AppError(
            ErrorCode.PERSON_NOT_FOUND,
            f"Person {person_id} does not exist in ledger {ledger_id}.",
            404,
        )
    return person


def _name_taken(ledger_id: int, name: str, session: Session) -> bool:
    stmt = select(Person.id).where(
        Person.ledger_id == ledger_id,
        func.lower(Person.name) == name.lower(),
    )
    return session.execute(stmt).first() is not None


def serialize_person(person: Person) -> dict:
    return {
        "id": person.id,
        "ledger_id": person.ledger_id,
        "name": person.name,
        "is_card_owner": person.is_card_owner,
        "role": person.role.value if person.role else None,
        "email": person.email,
        "created_at": person.created_at.isoformat(),
    }


# ── Public service functions ───────────────────────────────────────────────

def get_people(ledger_id: int, session: Session) -> list[Person]:
    """Returns the ledger's people in the order they were added."""
    _get_ledger_or_404(ledger_id, session)
    stmt = (
        select(Person)
        .where(Person.ledger_id == ledger_id)
        .order_by(Person.created_at, Person.id)
    )
    return list(session.execute(stmt).scalars().all())


def add_person(ledger_id: int, data: dict, session: Session) -> Person:
    """
    Adds a person to a ledger.

    Args:
        data: Validated dict from AddPersonSchema (name, optional
              is_card_owner, role, email).
    """
    _get_ledger_or_404(ledger_id, session)
    name = data["name"].strip()

    if _name_taken(ledger_id, name, session):
        raise AppError(
            ErrorCode.DUPLICATE_PERSON_NAME,
            f"{name!r} is already part of ledger {ledger_id}.",
            409,
            field="name",
        )

    existing = get_people(ledger_id, session)
    is_card_owner = data.get("is_card_owner")
    if is_card_owner is None:
        is_card_owner = not existing

    if is_card_owner:
        for other in existing:
            other.is_card_owner = False

    role: Role | None = data.get("role")
    person = Person(
        ledger_id=ledger_id,
        name=name,
        is_card_owner=is_card_owner,
        role=role,
        email=data.get("email"),
    )
    session.add(person)
    session.flush()

    logger.info("Added person %s to ledger %s (card owner: %s)", person.id, ledger_id, is_card_owner)
    return person


def set_card_owner(ledger_id: int, person_id: str, session: Session) -> Person:
    """Makes `person_id` the ledger's only card owner."""
    target = _get_person_or_404(ledger_id, person_id, session)

    for person in get_people(ledger_id, session):
        person.is_card_owner = person.id == target.id
    session.flush()
    return target


def remove_person(ledger_id: int, person_id: str, session: Session) -> None:
    """
    Removes a person from a ledger.

    Raises:
        AppError(PERSON_NOT_FOUND, 404)   -- no such person in the ledger.
        AppError(CARD_OWNER_REMOVAL, 422) -- person is the card owner and
                                             others remain.
    """
    person = _get_person_or_404(ledger_id, person_id, session)

    if person.is_card_owner and len(get_people(ledger_id, session)) > 1:
        raise AppError(
            ErrorCode.CARD_OWNER_REMOVAL,
            "The card owner cannot be removed. Transfer ownership to someone else first.",
            422,
        )

    session.delete(person)
    session.flush()
    logger.info("Removed person %s from ledger %s", person_id, ledger_id)
