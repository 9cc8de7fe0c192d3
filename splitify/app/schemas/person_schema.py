"""
schemas/person_schema.py — Marshmallow schemas for people endpoints.

Name uniqueness and the card-owner rules need the database and live in
services/person_service.py.

Schemas inherit from marshmallow.Schema and need no application context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from splitify.app.errors import ErrorCode
from splitify.app.models.person import Role


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class AddPersonSchema(Schema):
    """
    POST /ledgers/:id/people

    is_card_owner is optional: when omitted, the first person added to a
    ledger becomes its card owner.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    is_card_owner = fields.Bool(load_default=None, allow_none=True)

    role = fields.Enum(
        Role,
        load_default=None,
        allow_none=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_ROLE},
    )

    email = fields.Email(load_default=None, allow_none=True)
