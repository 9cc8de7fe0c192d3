"""
routes/transactions.py — Transaction route handlers.

Endpoints (base url_prefix=/api/v1/ledgers):
  POST   /ledgers/:id/transactions              → 201  record expense / payment
                                                       (common expenses are split)
  GET    /ledgers/:id/transactions              → 200  history (?type=&category=&spent_by=
                                                       &q=&month=&year=)
  DELETE /ledgers/:id/transactions/:tid         → 200  delete one transaction
  DELETE /ledgers/:id/splits/:split_group_id    → 200  delete a whole common split
  GET    /ledgers/:id/suggestions?q=            → 200  description suggestions
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from splitify.app.extensions import db
from splitify.app.schemas.transaction_schema import (
    SuggestionQuerySchema,
    TransactionEntrySchema,
    TransactionQuerySchema,
)
from splitify.app.services import suggestion_service, transaction_service

transactions_bp = Blueprint("transactions", __name__)


@transactions_bp.route("/<int:ledger_id>/transactions", methods=["POST"])
def record_transaction(ledger_id: int):
    """
    POST /ledgers/:id/transactions

    Returns every row written: one for a personal expense or payment, one per
    person for a common expense.
    """
    data = TransactionEntrySchema().load(request.get_json(force=True) or {})
    rows = transaction_service.record_transaction(
        ledger_id=ledger_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": [transaction_service.serialize_transaction(t) for t in rows],
        "warnings": [],
    }), 201


@transactions_bp.route("/<int:ledger_id>/transactions", methods=["GET"])
def list_transactions(ledger_id: int):
    """GET /ledgers/:id/transactions — Newest date first."""
    query = TransactionQuerySchema().load(request.args)
    rows = transaction_service.list_transactions(
        ledger_id=ledger_id,
        session=db.session,
        txn_type=query["type"],
        month=query["month"],
        year=query["year"],
        category=query["category"],
        spent_by=query["spent_by"],
        search=query["q"],
    )
    return jsonify({
        "data": [transaction_service.serialize_transaction(t) for t in rows],
        "warnings": [],
    }), 200


@transactions_bp.route("/<int:ledger_id>/transactions/<transaction_id>", methods=["DELETE"])
def delete_transaction(ledger_id: int, transaction_id: str):
    """DELETE /ledgers/:id/transactions/:tid — Edits are delete + re-create."""
    transaction_service.delete_transaction(
        ledger_id=ledger_id,
        transaction_id=transaction_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "transaction_id": transaction_id,
        },
        "warnings": [],
    }), 200


@transactions_bp.route("/<int:ledger_id>/splits/<split_group_id>", methods=["DELETE"])
def delete_split_group(ledger_id: int, split_group_id: str):
    """DELETE /ledgers/:id/splits/:split_group_id — Remove every share of one split."""
    removed = transaction_service.delete_split_group(
        ledger_id=ledger_id,
        split_group_id=split_group_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "split_group_id": split_group_id,
            "transactions_removed": removed,
        },
        "warnings": [],
    }), 200


@transactions_bp.route("/<int:ledger_id>/suggestions", methods=["GET"])
def get_suggestions(ledger_id: int):
    """GET /ledgers/:id/suggestions?q= — Description suggestions for the entry form."""
    query = SuggestionQuerySchema().load(request.args)
    result = suggestion_service.get_suggestions(
        ledger_id=ledger_id,
        query=query["q"],
        session=db.session,
        limit=current_app.config["SUGGESTION_LIMIT"],
        history_limit=current_app.config["SUGGESTION_HISTORY_LIMIT"],
    )
    return jsonify({"data": result, "warnings": []}), 200
