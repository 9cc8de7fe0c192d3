"""
routes/people.py — People route handlers.

Endpoints (base url_prefix=/api/v1/ledgers):
  POST   /ledgers/:id/people                     → 201  add person
  GET    /ledgers/:id/people                     → 200  list people
  PATCH  /ledgers/:id/people/:pid/card-owner     → 200  transfer card ownership
  DELETE /ledgers/:id/people/:pid                → 200  remove person
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitify.app.extensions import db
from splitify.app.schemas.person_schema import AddPersonSchema
from splitify.app.services import person_service

people_bp = Blueprint("people", __name__)


@people_bp.route("/<int:ledger_id>/people", methods=["POST"])
def add_person(ledger_id: int):
    """POST /ledgers/:id/people — The first person becomes card owner by default."""
    data = AddPersonSchema().load(request.get_json(force=True) or {})
    person = person_service.add_person(ledger_id=ledger_id, data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": person_service.serialize_person(person), "warnings": []}), 201


@people_bp.route("/<int:ledger_id>/people", methods=["GET"])
def list_people(ledger_id: int):
    """GET /ledgers/:id/people — People in the order they were added."""
    people = person_service.get_people(ledger_id=ledger_id, session=db.session)
    return jsonify({
        "data": [person_service.serialize_person(p) for p in people],
        "warnings": [],
    }), 200


@people_bp.route("/<int:ledger_id>/people/<person_id>/card-owner", methods=["PATCH"])
def set_card_owner(ledger_id: int, person_id: str):
    """PATCH /ledgers/:id/people/:pid/card-owner — Make this person the only card owner."""
    person = person_service.set_card_owner(
        ledger_id=ledger_id,
        person_id=person_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": person_service.serialize_person(person), "warnings": []}), 200


@people_bp.route("/<int:ledger_id>/people/<person_id>", methods=["DELETE"])
def remove_person(ledger_id: int, person_id: str):
    """
    DELETE /ledgers/:id/people/:pid — Remove a person.
    Their transactions stay and show up as orphaned references in balances.
    """
    person_service.remove_person(ledger_id=ledger_id, person_id=person_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {
            "removed": True,
            "ledger_id": ledger_id,
            "person_id": person_id,
        },
        "warnings": [],
    }), 200
