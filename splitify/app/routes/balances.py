"""
routes/balances.py — Balance route handler.

Endpoints (base url_prefix=/api/v1/ledgers):
  GET /ledgers/:id/balances               → 200  full SplitCalculation
  GET /ledgers/:id/balances?month=&year=  → 200  one statement period
  GET /ledgers/:id/balances?itemised=true → 200  each person also lists their
                                               transactions

Orphaned references (transactions whose spender is no longer in the ledger)
do not fail the request. They come back in `warnings` with code
ORPHANED_REFERENCE and are reflected in the aggregate totals only.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitify.app.extensions import db
from splitify.app.schemas.transaction_schema import BalanceQuerySchema
from splitify.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<int:ledger_id>/balances", methods=["GET"])
def get_balances(ledger_id: int):
    """GET /ledgers/:id/balances — Recomputed from the transactions on every call."""
    query = BalanceQuerySchema().load(request.args)
    result, warnings = balance_service.get_balance_response(
        ledger_id=ledger_id,
        session=db.session,
        month=query["month"],
        year=query["year"],
        itemised=query["itemised"],
    )
    return jsonify({"data": result, "warnings": warnings}), 200
