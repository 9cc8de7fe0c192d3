"""
errors.py — AppError base class and error code registry.

Every error returned by the Splitify API uses a code defined here.
Services raise AppError (or one of the subclasses below); routes never catch
it and the global handler in app/__init__.py turns it into the JSON envelope.

Error codes are a versioned contract. Messages are prose and may change.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    INVALID_AMOUNT_PRECISION   = "INVALID_AMOUNT_PRECISION"
    INVALID_TRANSACTION_TYPE   = "INVALID_TRANSACTION_TYPE"
    INVALID_CATEGORY           = "INVALID_CATEGORY"
    INVALID_ROLE               = "INVALID_ROLE"
    SPENDER_SENT_FOR_COMMON    = "SPENDER_SENT_FOR_COMMON"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_PERSON_NAME      = "DUPLICATE_PERSON_NAME"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    LEDGER_NOT_FOUND           = "LEDGER_NOT_FOUND"
    PERSON_NOT_FOUND           = "PERSON_NOT_FOUND"
    TRANSACTION_NOT_FOUND      = "TRANSACTION_NOT_FOUND"
    SPLIT_NOT_FOUND            = "SPLIT_NOT_FOUND"

    # ── Business Rule Violations (422) ────────────────────────────────────
    EMPTY_PARTICIPANT_SET      = "EMPTY_PARTICIPANT_SET"
    UNKNOWN_SPENDER            = "UNKNOWN_SPENDER"
    CARD_OWNER_REMOVAL         = "CARD_OWNER_REMOVAL"

    # ── System Errors (500) ────────────────────────────────────────────────
    BATCH_REJECTED             = "BATCH_REJECTED"
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Warnings are returned alongside a 2xx response in the `warnings` array.
# They do not block the request.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # A transaction's spent_by matches no person in the ledger. It is left out
    # of every per-person balance but still counted in the aggregate totals.
    ORPHANED_REFERENCE = "ORPHANED_REFERENCE"


# ── Core errors ────────────────────────────────────────────────────────────
# Raised by the pure splitter/reconciler functions. They subclass AppError so
# the HTTP layer needs no translation step.

class InvalidAmountError(AppError):
    """Amount is missing, non-numeric, non-finite, zero or negative."""

    def __init__(self, message: str, field: str | None = "amount") -> None:
        super().__init__(ErrorCode.INVALID_AMOUNT, message, 400, field=field)


class EmptyParticipantSetError(AppError):
    """A common expense was split with no known people."""

    def __init__(self, message: str = "A common expense needs at least one person to split between.") -> None:
        super().__init__(ErrorCode.EMPTY_PARTICIPANT_SET, message, 422)
