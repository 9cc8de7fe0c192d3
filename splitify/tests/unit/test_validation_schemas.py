"""
tests/unit/test_validation_schemas.py — Unit tests for marshmallow schemas.

What this file proves:
  - TransactionEntrySchema accepts the three entry kinds and rejects every
    malformed entry with the error code the API reports
  - Amounts with more than 2 decimal places are rejected, never rounded
  - AddPersonSchema and CreateLedgerSchema enforce their field rules

No database, no Flask: schemas are loaded directly.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from marshmallow import ValidationError

from splitify.app.errors import ErrorCode
from splitify.app.models.person import Role
from splitify.app.models.transaction import Category, TransactionType
from splitify.app.schemas.ledger_schema import CreateLedgerSchema
from splitify.app.schemas.person_schema import AddPersonSchema
from splitify.app.schemas.transaction_schema import (
    BalanceQuerySchema,
    PeriodQuerySchema,
    TransactionEntrySchema,
    TransactionQuerySchema,
)


def _entry(**overrides) -> dict:
    payload = {
        "amount": "25.00",
        "description": "Lunch",
        "date": "14",
        "type": "expense",
        "category": "personal",
        "spent_by": "p-1",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not ...}


def _first_error(exc: ValidationError) -> tuple[str, str]:
    field, messages = next(iter(exc.messages.items()))
    return field, messages[0]


# ── TransactionEntrySchema: valid entries ──────────────────────────────────

class TestEntrySchemaAccepts:

    def test_personal_expense(self):
        data = TransactionEntrySchema().load(_entry())

        assert data["amount"] == Decimal("25.00")
        assert data["type"] == TransactionType.EXPENSE
        assert data["category"] == Category.PERSONAL
        assert data["spent_by"] == "p-1"

    def test_common_expense_without_spender(self):
        data = TransactionEntrySchema().load(_entry(category="common", spent_by=...))

        assert data["category"] == Category.COMMON
        assert data["spent_by"] is None

    def test_payment_defaults_to_personal_category(self):
        data = TransactionEntrySchema().load(_entry(type="payment", category=...))

        assert data["type"] == TransactionType.PAYMENT
        assert data["category"] == Category.PERSONAL

    def test_statement_period(self):
        data = TransactionEntrySchema().load(_entry(statement_month=2, statement_year=2025))

        assert (data["statement_month"], data["statement_year"]) == (2, 2025)


# ── TransactionEntrySchema: rejected entries ───────────────────────────────

class TestEntrySchemaRejects:

    @pytest.mark.parametrize("amount", ["0", "-3", "abc", None, "NaN"])
    def test_bad_amount(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(amount=amount))

        assert _first_error(exc_info.value) == ("amount", ErrorCode.INVALID_AMOUNT)

    def test_missing_amount(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(amount=...))

        assert _first_error(exc_info.value) == ("amount", ErrorCode.INVALID_AMOUNT)

    @pytest.mark.parametrize("amount", ["10000000000", "1E10", "99999999999.99"])
    def test_amount_beyond_column_limit(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(amount=amount))

        assert _first_error(exc_info.value) == ("amount", ErrorCode.INVALID_AMOUNT)

    def test_three_decimal_places(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(amount="10.123"))

        assert _first_error(exc_info.value) == ("amount", ErrorCode.INVALID_AMOUNT_PRECISION)

    @pytest.mark.parametrize("field", ["description", "date"])
    def test_blank_text_field(self, field):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(**{field: "   "}))

        assert _first_error(exc_info.value) == (field, ErrorCode.MISSING_FIELD)

    def test_unknown_type(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(type="refund"))

        assert _first_error(exc_info.value) == ("type", ErrorCode.INVALID_TRANSACTION_TYPE)

    def test_unknown_category(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(category="shared"))

        assert _first_error(exc_info.value) == ("category", ErrorCode.INVALID_CATEGORY)

    def test_common_payment(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(type="payment", category="common"))

        assert _first_error(exc_info.value) == ("category", ErrorCode.INVALID_CATEGORY)

    def test_common_expense_with_spender(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(category="common"))

        assert _first_error(exc_info.value) == ("spent_by", ErrorCode.SPENDER_SENT_FOR_COMMON)

    @pytest.mark.parametrize("txn_type", ["expense", "payment"])
    def test_missing_spender(self, txn_type):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(type=txn_type, spent_by=...))

        assert _first_error(exc_info.value) == ("spent_by", ErrorCode.MISSING_FIELD)

    @pytest.mark.parametrize("month", [0, 13, "3"])
    def test_statement_month_out_of_range_or_not_int(self, month):
        with pytest.raises(ValidationError) as exc_info:
            TransactionEntrySchema().load(_entry(statement_month=month))

        assert "statement_month" in exc_info.value.messages


# ── Query schemas ──────────────────────────────────────────────────────────

class TestQuerySchemas:

    def test_period_query_parses_strings_and_ignores_unknown_keys(self):
        data = PeriodQuerySchema().load({"month": "4", "year": "2024", "page": "2"})

        assert data == {"month": 4, "year": 2024}

    def test_period_query_defaults(self):
        assert PeriodQuerySchema().load({}) == {"month": None, "year": None}

    def test_transaction_query_type_filter(self):
        data = TransactionQuerySchema().load({"type": "payment"})

        assert data["type"] == TransactionType.PAYMENT

    def test_transaction_query_rejects_unknown_type(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionQuerySchema().load({"type": "refund"})

        assert _first_error(exc_info.value) == ("type", ErrorCode.INVALID_TRANSACTION_TYPE)

    def test_transaction_query_history_filters(self):
        data = TransactionQuerySchema().load({"category": "common", "spent_by": "p-1", "q": "Rent"})

        assert data["category"] == Category.COMMON
        assert data["spent_by"] == "p-1"
        assert data["q"] == "Rent"

    def test_transaction_query_filter_defaults(self):
        data = TransactionQuerySchema().load({})

        assert (data["category"], data["spent_by"], data["q"]) == (None, None, "")

    def test_transaction_query_rejects_unknown_category(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionQuerySchema().load({"category": "shared"})

        assert _first_error(exc_info.value) == ("category", ErrorCode.INVALID_CATEGORY)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("false", False)])
    def test_balance_query_itemised_flag(self, raw, expected):
        data = BalanceQuerySchema().load({"itemised": raw, "month": "3"})

        assert data["itemised"] is expected
        assert data["month"] == 3

    def test_balance_query_is_not_itemised_by_default(self):
        assert BalanceQuerySchema().load({})["itemised"] is False


# ── AddPersonSchema ────────────────────────────────────────────────────────

class TestAddPersonSchema:

    def test_minimal(self):
        data = AddPersonSchema().load({"name": "Asha"})

        assert data == {"name": "Asha", "is_card_owner": None, "role": None, "email": None}

    def test_full(self):
        data = AddPersonSchema().load({
            "name": "Asha",
            "is_card_owner": True,
            "role": "member",
            "email": "asha@example.com",
        })

        assert data["role"] == Role.MEMBER
        assert data["is_card_owner"] is True

    def test_blank_name(self):
        with pytest.raises(ValidationError) as exc_info:
            AddPersonSchema().load({"name": "   "})

        assert "name" in exc_info.value.messages

    def test_unknown_role(self):
        with pytest.raises(ValidationError) as exc_info:
            AddPersonSchema().load({"name": "Asha", "role": "admin"})

        assert _first_error(exc_info.value) == ("role", ErrorCode.INVALID_ROLE)

    def test_bad_email(self):
        with pytest.raises(ValidationError) as exc_info:
            AddPersonSchema().load({"name": "Asha", "email": "not-an-email"})

        assert "email" in exc_info.value.messages


# ── CreateLedgerSchema ─────────────────────────────────────────────────────

class TestCreateLedgerSchema:

    def test_name_only(self):
        data = CreateLedgerSchema().load({"name": "Household card"})

        assert data["name"] == "Household card"
        assert data["last_four_digits"] is None

    @pytest.mark.parametrize("digits", ["123", "12345", "12a4"])
    def test_last_four_digits_must_be_four_digits(self, digits):
        with pytest.raises(ValidationError) as exc_info:
            CreateLedgerSchema().load({"name": "Card", "last_four_digits": digits})

        assert "last_four_digits" in exc_info.value.messages

    def test_missing_name(self):
        with pytest.raises(ValidationError) as exc_info:
            CreateLedgerSchema().load({})

        assert "name" in exc_info.value.messages
