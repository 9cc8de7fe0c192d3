"""
routes/ledgers.py — Ledger route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries.

Endpoints (base url_prefix=/api/v1/ledgers):
  POST   /ledgers        → 201  create ledger
  GET    /ledgers        → 200  list ledgers
  GET    /ledgers/:id    → 200  ledger + people
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitify.app.extensions import db
from splitify.app.schemas.ledger_schema import CreateLedgerSchema
from splitify.app.services import ledger_service

ledgers_bp = Blueprint("ledgers", __name__)


@ledgers_bp.route("/", methods=["POST"])
def create_ledger():
    """POST /ledgers — Create an empty ledger."""
    data = CreateLedgerSchema().load(request.get_json(force=True) or {})
    result = ledger_service.create_ledger(data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@ledgers_bp.route("/", methods=["GET"])
def list_ledgers():
    """GET /ledgers — List every ledger."""
    result = ledger_service.list_ledgers(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@ledgers_bp.route("/<int:ledger_id>", methods=["GET"])
def get_ledger(ledger_id: int):
    """GET /ledgers/:id — Ledger details with its people."""
    result = ledger_service.get_ledger(ledger_id=ledger_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
