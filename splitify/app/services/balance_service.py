"""
services/balance_service.py — Balance reconciliation.

This file is the single source of truth for how balances are computed.
reconcile() is pure: it takes transactions and people and returns a
SplitCalculation. Everything else in this module only loads its inputs from
the database and shapes its output for the API.

Per person P (people order is preserved in the report):
  personal_expenses(P) = Σ expense, category=personal, not is_common_split, spent_by=P
  common_expenses(P)   = Σ expense, is_common_split, spent_by=P
  total_expenses(P)    = personal_expenses(P) + common_expenses(P)
  total_payments(P)    = Σ payment, spent_by=P
  net_balance(P)       = total_expenses(P) − total_payments(P)   (positive = owes)

Aggregates:
  total_expenses        = Σ every expense (orphans included)
  total_payments        = Σ every payment (orphans included)
  total_common_expenses = Σ every is_common_split share
  outstanding_balance   = Σ max(0, net_balance(P))

Orphans (spent_by matches no person) are skipped per person, kept in the
aggregates, and reported as ORPHANED_REFERENCE warnings. They never abort a
pass.

itemise() groups the same transactions per person for the itemised report.

Layer rules:
  - No Flask imports. Receives a SQLAlchemy session where it needs one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from splitify.app.errors import WarningCode
from splitify.app.models.transaction import Category, TransactionType
from splitify.app.services import person_service, transaction_service

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class PersonBalance:
    person_id: str
    personal_expenses: Decimal = _ZERO
    common_expenses: Decimal = _ZERO
    total_payments: Decimal = _ZERO

    @property
    def total_expenses(self) -> Decimal:
        return self.personal_expenses + self.common_expenses

    @property
    def net_balance(self) -> Decimal:
        return self.total_expenses - self.total_payments

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "personal_expenses": self.personal_expenses,
            "common_expenses": self.common_expenses,
            "total_expenses": self.total_expenses,
            "total_payments": self.total_payments,
            "net_balance": self.net_balance,
        }


@dataclass(frozen=True)
class SplitCalculation:
    person_balances: tuple[PersonBalance, ...]
    total_expenses: Decimal
    total_payments: Decimal
    total_common_expenses: Decimal
    orphaned_transaction_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def outstanding_balance(self) -> Decimal:
        """Money still owed into the pool: positive net balances only."""
        return sum(
            (max(_ZERO, b.net_balance) for b in self.person_balances),
            _ZERO,
        )

    @property
    def balance_sum(self) -> Decimal:
        """Σ net balances — the net group-wide imbalance."""
        return sum((b.net_balance for b in self.person_balances), _ZERO)

    def balance_for(self, person_id: str) -> PersonBalance | None:
        return next((b for b in self.person_balances if b.person_id == person_id), None)

    def to_dict(self) -> dict:
        return {
            "person_balances": [b.to_dict() for b in self.person_balances],
            "total_expenses": self.total_expenses,
            "total_payments": self.total_payments,
            "total_common_expenses": self.total_common_expenses,
            "outstanding_balance": self.outstanding_balance,
            "balance_sum": self.balance_sum,
            "orphaned_transaction_ids": list(self.orphaned_transaction_ids),
        }


# ── Core algorithm ─────────────────────────────────────────────────────────

def reconcile(transactions: Iterable, people: Iterable) -> SplitCalculation:
    """
    Folds a transaction collection into a SplitCalculation.

    Args:
        transactions: Objects exposing id, amount, type, category, spent_by
                      and is_common_split. Folded in the order given.
        people:       Objects exposing id. The report lists balances in this
                      order; duplicates are collapsed to their first position.

    Returns:
        A fresh SplitCalculation. Calling reconcile() again on the same
        inputs produces an equal result.
    """
    buckets: dict[str, dict[str, Decimal]] = {}
    for person in people:
        buckets.setdefault(
            person.id,
            {"personal": _ZERO, "common": _ZERO, "payments": _ZERO},
        )

    total_expenses = _ZERO
    total_payments = _ZERO
    total_common = _ZERO
    orphaned: list[str] = []

    for txn in transactions:
        amount = Decimal(txn.amount)
        is_share = bool(txn.is_common_split)

        if txn.type == TransactionType.EXPENSE:
            total_expenses += amount
            if is_share:
                total_common += amount
        elif txn.type == TransactionType.PAYMENT:
            total_payments += amount

        bucket = buckets.get(txn.spent_by)
        if bucket is None:
            orphaned.append(txn.id)
            continue

        if txn.type == TransactionType.PAYMENT:
            bucket["payments"] += amount
        elif is_share:
            bucket["common"] += amount
        elif txn.category == Category.PERSONAL:
            bucket["personal"] += amount
        # An unsplit common expense belongs to nobody in particular; it only
        # counts toward the aggregate total above.

    if orphaned:
        logger.warning(
            "%d transaction(s) reference unknown people and were left out of "
            "per-person balances: %s",
            len(orphaned), ", ".join(orphaned),
        )

    balances = tuple(
        PersonBalance(
            person_id=person_id,
            personal_expenses=bucket["personal"],
            common_expenses=bucket["common"],
            total_payments=bucket["payments"],
        )
        for person_id, bucket in buckets.items()
    )

    return SplitCalculation(
        person_balances=balances,
        total_expenses=total_expenses,
        total_payments=total_payments,
        total_common_expenses=total_common,
        orphaned_transaction_ids=tuple(orphaned),
    )


def orphan_warnings(calculation: SplitCalculation) -> list[dict]:
    """Builds one ORPHANED_REFERENCE warning per orphaned transaction."""
    return [
        {
            "code": WarningCode.ORPHANED_REFERENCE,
            "message": (
                f"Transaction {txn_id} was recorded for a person who is no "
                "longer in this ledger. It is counted in the totals only."
            ),
            "transaction_id": txn_id,
        }
        for txn_id in calculation.orphaned_transaction_ids
    ]


def itemise(transactions: Iterable, people: Iterable) -> dict[str, list]:
    """
    Groups transactions by the person who made them, keeping fold order.

    Every person gets an entry, empty if they have no transactions.
    Orphaned transactions belong to nobody and are left out.
    """
    groups: dict[str, list] = {}
    for person in people:
        groups.setdefault(person.id, [])
    for txn in transactions:
        if txn.spent_by in groups:
            groups[txn.spent_by].append(txn)
    return groups


# ── Response builder ───────────────────────────────────────────────────────

def get_balance_response(
        ledger_id: int,
        session: Session,
        month: int | None = None,
        year: int | None = None,
        itemised: bool = False,
) -> tuple[dict, list[dict]]:
    """
    Builds the payload for GET /ledgers/:id/balances.

    Optional month/year restrict the pass to one statement period. With
    itemised=True each person entry also carries the transactions behind it.

    Returns:
        (payload, warnings). Warnings hold one ORPHANED_REFERENCE entry per
        transaction whose spender is not in the ledger.

    Raises:
        AppError(LEDGER_NOT_FOUND, 404) -- ledger does not exist.
    """
    people = person_service.get_people(ledger_id, session)
    transactions = transaction_service.get_ledger_transactions(
        ledger_id, session, month=month, year=year,
    )

    calculation = reconcile(transactions, people)
    names = {p.id: p.name for p in people}
    owners = {p.id for p in people if p.is_card_owner}

    payload = calculation.to_dict()
    for entry in payload["person_balances"]:
        entry["name"] = names[entry["person_id"]]
        entry["is_card_owner"] = entry["person_id"] in owners

    if itemised:
        groups = itemise(transactions, people)
        for entry in payload["person_balances"]:
            entry["transactions"] = [
                transaction_service.serialize_transaction(t)
                for t in groups[entry["person_id"]]
            ]

    payload["ledger_id"] = ledger_id
    payload["statement_month"] = month
    payload["statement_year"] = year
    return payload, orphan_warnings(calculation)
