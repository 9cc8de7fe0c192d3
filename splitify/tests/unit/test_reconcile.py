"""
tests/unit/test_reconcile.py — Unit tests for balance_service.reconcile.

What this file proves:
  - Per-person buckets: personal expenses, common-split shares and payments
    land in the right bucket and net_balance = total_expenses − total_payments
  - Aggregates count every transaction, orphans included
  - outstanding_balance is the sum of positive net balances only
    (zero once every person has paid off what they spent)
  - Transactions whose spender is unknown are reported, never fatal
  - An unsplit common expense counts toward the aggregate total only
  - Balances come back in people order, and reconciling twice gives the
    same answer
  - itemise() groups transactions per person for the itemised report

Unit test constraints:
  - No database, no Flask. Transactions and people are SimpleNamespace
    objects exposing the attributes the reconciler reads.
"""

from __future__ import annotations

import itertools
from decimal import Decimal
from types import SimpleNamespace

from splitify.app.errors import WarningCode
from splitify.app.models.transaction import Category, TransactionType
from splitify.app.services.balance_service import (
    PersonBalance,
    SplitCalculation,
    itemise,
    orphan_warnings,
    reconcile,
)
from splitify.app.services.transaction_service import split_common_expense

_ids = itertools.count(1)


def _person(pid: str) -> SimpleNamespace:
    return SimpleNamespace(id=pid)


def _expense(spent_by: str, amount: str, category: Category = Category.PERSONAL) -> SimpleNamespace:
    return SimpleNamespace(
        id=f"t{next(_ids)}",
        amount=Decimal(amount),
        type=TransactionType.EXPENSE,
        category=category,
        spent_by=spent_by,
        is_common_split=False,
    )


def _payment(spent_by: str, amount: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=f"t{next(_ids)}",
        amount=Decimal(amount),
        type=TransactionType.PAYMENT,
        category=Category.PERSONAL,
        spent_by=spent_by,
        is_common_split=False,
    )


def _shares(amount: str, people: list) -> list[SimpleNamespace]:
    return [SimpleNamespace(**record) for record in split_common_expense(amount, "Dinner", "1", people)]


# ── Worked example ─────────────────────────────────────────────────────────

class TestTwoPersonScenario:
    """
    A spends 100 on a personal expense; a 60 common expense is split 30/30;
    B pays 50.
      A: personal 100 + common 30 − payments 0   → net 130
      B: personal 0   + common 30 − payments 50  → net −20
    """

    def _calc(self) -> SplitCalculation:
        people = [_person("A"), _person("B")]
        transactions = [_expense("A", "100"), *_shares("60", people), _payment("B", "50")]
        return reconcile(transactions, people)

    def test_person_a(self):
        a = self._calc().balance_for("A")

        assert a.personal_expenses == Decimal("100")
        assert a.common_expenses == Decimal("30")
        assert a.total_expenses == Decimal("130")
        assert a.total_payments == Decimal("0")
        assert a.net_balance == Decimal("130")

    def test_person_b(self):
        b = self._calc().balance_for("B")

        assert b.personal_expenses == Decimal("0")
        assert b.common_expenses == Decimal("30")
        assert b.total_payments == Decimal("50")
        assert b.net_balance == Decimal("-20")

    def test_aggregates(self):
        calc = self._calc()

        assert calc.total_expenses == Decimal("160")
        assert calc.total_payments == Decimal("50")
        assert calc.total_common_expenses == Decimal("60")
        assert calc.outstanding_balance == Decimal("130")
        assert calc.balance_sum == Decimal("110")
        assert calc.orphaned_transaction_ids == ()


# ── Orphans ────────────────────────────────────────────────────────────────

class TestOrphanedReferences:

    def test_unknown_spender_is_reported_not_fatal(self):
        orphan = _expense("ghost", "40")
        calc = reconcile([_expense("A", "10"), orphan], [_person("A")])

        assert calc.orphaned_transaction_ids == (orphan.id,)
        assert calc.balance_for("ghost") is None

    def test_orphan_counts_in_aggregates_only(self):
        calc = reconcile(
            [_expense("A", "10"), _expense("ghost", "40"), _payment("ghost", "5")],
            [_person("A")],
        )

        assert calc.total_expenses == Decimal("50")
        assert calc.total_payments == Decimal("5")
        assert calc.balance_for("A").net_balance == Decimal("10")
        assert len(calc.orphaned_transaction_ids) == 2

    def test_orphan_warnings_carry_code_and_transaction_id(self):
        orphan = _payment("ghost", "5")
        warnings = orphan_warnings(reconcile([orphan], [_person("A")]))

        assert len(warnings) == 1
        assert warnings[0]["code"] == WarningCode.ORPHANED_REFERENCE
        assert warnings[0]["transaction_id"] == orphan.id
        assert warnings[0]["message"]


# ── Bucketing rules ────────────────────────────────────────────────────────

class TestBucketing:

    def test_unsplit_common_expense_counts_in_total_only(self):
        calc = reconcile([_expense("A", "90", Category.COMMON)], [_person("A")])

        assert calc.total_expenses == Decimal("90")
        assert calc.total_common_expenses == Decimal("0")
        assert calc.balance_for("A").total_expenses == Decimal("0")
        assert calc.orphaned_transaction_ids == ()

    def test_overpayment_is_not_outstanding(self):
        calc = reconcile(
            [_expense("A", "10"), _payment("A", "25"), _expense("B", "7")],
            [_person("A"), _person("B")],
        )

        assert calc.balance_for("A").net_balance == Decimal("-15")
        assert calc.outstanding_balance == Decimal("7")

    def test_fully_paid_ledger_has_nothing_outstanding(self):
        people = [_person("A"), _person("B")]
        calc = reconcile(
            [
                _expense("A", "40"),
                *_shares("30", people),
                _payment("A", "55"),
                _expense("B", "12.50"),
                _payment("B", "27.50"),
            ],
            people,
        )

        assert calc.balance_for("A").total_expenses == Decimal("55")
        assert calc.balance_for("B").total_expenses == Decimal("27.50")
        assert [b.net_balance for b in calc.person_balances] == [Decimal("0"), Decimal("0")]
        assert calc.outstanding_balance == Decimal("0")
        assert calc.total_expenses == calc.total_payments == Decimal("82.50")

    def test_string_amounts_are_read_as_decimal(self):
        txn = _expense("A", "0")
        txn.amount = "12.50"

        calc = reconcile([txn], [_person("A")])

        assert calc.balance_for("A").personal_expenses == Decimal("12.50")


# ── Ordering, emptiness, idempotence ───────────────────────────────────────

class TestReconcileShape:

    def test_balances_follow_people_order(self):
        people = [_person("C"), _person("A"), _person("B")]
        calc = reconcile([_expense("B", "1"), _expense("C", "2")], people)

        assert [b.person_id for b in calc.person_balances] == ["C", "A", "B"]

    def test_person_without_transactions_gets_zero_balance(self):
        calc = reconcile([], [_person("A")])

        assert calc.person_balances == (PersonBalance(person_id="A"),)
        assert calc.balance_for("A").net_balance == Decimal("0")

    def test_empty_ledger(self):
        calc = reconcile([], [])

        assert calc.person_balances == ()
        assert calc.total_expenses == Decimal("0")
        assert calc.outstanding_balance == Decimal("0")

    def test_reconcile_is_idempotent(self):
        people = [_person("A"), _person("B")]
        transactions = [_expense("A", "12.34"), *_shares("10", people), _payment("B", "3")]

        assert reconcile(transactions, people) == reconcile(transactions, people)

    def test_to_dict_exposes_every_total(self):
        payload = reconcile([_expense("A", "5")], [_person("A")]).to_dict()

        assert set(payload) == {
            "person_balances",
            "total_expenses",
            "total_payments",
            "total_common_expenses",
            "outstanding_balance",
            "balance_sum",
            "orphaned_transaction_ids",
        }
        assert payload["person_balances"][0]["net_balance"] == Decimal("5")


# ── Per-person itemisation ─────────────────────────────────────────────────

class TestItemise:

    def test_groups_by_spender_in_fold_order(self):
        first, second = _expense("A", "3"), _payment("A", "1")
        other = _expense("B", "2")

        groups = itemise([first, other, second], [_person("A"), _person("B")])

        assert groups == {"A": [first, second], "B": [other]}

    def test_shares_go_to_each_person(self):
        people = [_person("A"), _person("B")]
        shares = _shares("10", people)

        groups = itemise(shares, people)

        assert [t.spent_by for t in groups["A"]] == ["A"]
        assert groups["B"][0].amount == Decimal("5.0000000000")

    def test_orphans_and_idle_people(self):
        groups = itemise([_expense("ghost", "9")], [_person("A")])

        assert groups == {"A": []}
