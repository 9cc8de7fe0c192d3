"""
schemas/transaction_schema.py — Marshmallow schemas for transaction endpoints.

TransactionEntrySchema is the validated form of the entry-form state
(amount, description, date, type, category, spent_by). load() either returns
a typed dict or raises a ValidationError whose first message is the error
code to report.

Validation responsibility:
  - This file:
      - Amount present, numeric, finite, strictly positive and below
        MAX_AMOUNT (INVALID_AMOUNT)
        and at most 2 decimal places (INVALID_AMOUNT_PRECISION)
      - description and date present and non-blank (MISSING_FIELD)
      - type / category enum values
      - spent_by required for personal expenses and payments, absent for
        common expenses (SPENDER_SENT_FOR_COMMON)
  - services/transaction_service.py:
      - UNKNOWN_SPENDER (422)       — requires a people lookup
      - EMPTY_PARTICIPANT_SET (422) — requires a people lookup

Schemas inherit from marshmallow.Schema and need no application context.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    validate,
    validates_schema,
)

from splitify.app.errors import ErrorCode
from splitify.app.models.transaction import MAX_AMOUNT, Category, TransactionType


def _validate_monetary_amount(value: Decimal) -> None:
    """
    Strictly positive, below MAX_AMOUNT, at most 2 decimal places.

    Input with more than 2 decimal places is rejected, never rounded. Common
    split shares are produced server-side and are not subject to this rule.
    """
    if value <= Decimal("0"):
        raise ValidationError(ErrorCode.INVALID_AMOUNT)
    if value >= MAX_AMOUNT:
        raise ValidationError(ErrorCode.INVALID_AMOUNT)

    # Decimal("10.123").as_tuple().exponent == -3  → reject
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def _validate_present_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError(ErrorCode.MISSING_FIELD)


_AMOUNT_ERRORS = {
    "required": ErrorCode.INVALID_AMOUNT,
    "null": ErrorCode.INVALID_AMOUNT,
    "invalid": ErrorCode.INVALID_AMOUNT,
    "special": ErrorCode.INVALID_AMOUNT,
}


class TransactionEntrySchema(Schema):
    """
    POST /ledgers/:id/transactions

    Entry kinds:
      - type=expense, category=personal → one transaction for spent_by
      - type=expense, category=common   → split equally across the ledger's
                                          people; spent_by must be absent
      - type=payment                    → one payment made by spent_by
    """

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
        error_messages=_AMOUNT_ERRORS,
    )

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(max=255, error="Description must be at most 255 characters."),
            _validate_present_after_trim,
        ],
    )

    # Day of month ("14") or an ISO date. Stored as given.
    date = fields.Str(
        required=True,
        validate=[
            validate.Length(max=32, error="Date must be at most 32 characters."),
            _validate_present_after_trim,
        ],
    )

    type = fields.Enum(
        TransactionType,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_TRANSACTION_TYPE},
    )

    category = fields.Enum(
        Category,
        load_default=Category.PERSONAL,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY},
    )

    spent_by = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(min=1, max=36),
    )

    credit_card_id = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=64),
    )

    statement_month = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1, max=12, error="statement_month must be between 1 and 12."),
    )

    statement_year = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1900, max=9999, error="statement_year must be a four-digit year."),
    )

    @validates_schema
    def validate_entry_kind(self, data: dict, **kwargs) -> None:
        """
        Cross-field rules for the three entry kinds.

        1. A payment has no category other than the neutral default.
        2. A common expense is split by the server: spent_by must be absent.
        3. Every other entry needs spent_by.
        """
        txn_type = data.get("type")
        category = data.get("category", Category.PERSONAL)
        spent_by = data.get("spent_by")

        if txn_type == TransactionType.PAYMENT and category == Category.COMMON:
            raise ValidationError({"category": [ErrorCode.INVALID_CATEGORY]})

        if txn_type == TransactionType.EXPENSE and category == Category.COMMON:
            if spent_by is not None:
                raise ValidationError({"spent_by": [ErrorCode.SPENDER_SENT_FOR_COMMON]})
            return

        if spent_by is None:
            raise ValidationError({"spent_by": [ErrorCode.MISSING_FIELD]})


class PeriodQuerySchema(Schema):
    """Query string for ?month=&year= statement-period filters."""

    class Meta:
        unknown = EXCLUDE

    month = fields.Int(
        load_default=None,
        validate=validate.Range(min=1, max=12, error="month must be between 1 and 12."),
    )
    year = fields.Int(
        load_default=None,
        validate=validate.Range(min=1900, max=9999, error="year must be a four-digit year."),
    )


class BalanceQuerySchema(PeriodQuerySchema):
    """GET /ledgers/:id/balances?month=&year=&itemised="""

    itemised = fields.Bool(load_default=False)


class TransactionQuerySchema(PeriodQuerySchema):
    """GET /ledgers/:id/transactions?type=&category=&spent_by=&q=&month=&year="""

    type = fields.Enum(
        TransactionType,
        load_default=None,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_TRANSACTION_TYPE},
    )

    # "common" matches every common-split share; "personal" matches the rest.
    category = fields.Enum(
        Category,
        load_default=None,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY},
    )

    spent_by = fields.Str(load_default=None, validate=validate.Length(min=1, max=36))

    # Case-insensitive search over description, spender name and category.
    q = fields.Str(load_default="", validate=validate.Length(max=255))


class SuggestionQuerySchema(Schema):
    """GET /ledgers/:id/suggestions?q="""

    class Meta:
        unknown = EXCLUDE

    q = fields.Str(load_default="", validate=validate.Length(max=255))
