"""
schemas/ledger_schema.py — Marshmallow schemas for ledger endpoints.

Schemas inherit from marshmallow.Schema and need no application context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(name)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateLedgerSchema(Schema):
    """POST /ledgers"""

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Ledger name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    card_name = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=100),
    )

    # Only the last four digits are ever stored; never a full card number.
    last_four_digits = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Regexp(r"^\d{4}$", error="last_four_digits must be exactly 4 digits."),
    )

    issuing_bank = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=100),
    )
