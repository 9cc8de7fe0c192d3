"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session with create_app("testing"). Unless
    TEST_DATABASE_URL points elsewhere, that is an in-memory SQLite database.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - make_ledger(client, ...)        → ledger dict
  - add_person(client, ...)         → HTTP response
  - make_person(client, ...)        → person dict
  - record(client, ledger_id, ...)  → HTTP response

These are plain functions so they can be called with arbitrary arguments in
any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from splitify.app import create_app
from splitify.app.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the whole session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    yield

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM transactions"))
            conn.execute(text("DELETE FROM people"))
            conn.execute(text("DELETE FROM ledgers"))
            conn.commit()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_ledger(client, name: str = "Household card", **extra) -> dict:
    resp = client.post("/api/v1/ledgers/", json={"name": name, **extra})
    assert resp.status_code == 201, f"make_ledger failed: {resp.get_json()}"
    return resp.get_json()["data"]


def add_person(client, ledger_id: int, name: str, **extra):
    """Adds a person and returns the HTTP response."""
    return client.post(
        f"/api/v1/ledgers/{ledger_id}/people",
        json={"name": name, **extra},
    )


def make_person(client, ledger_id: int, name: str, **extra) -> dict:
    resp = add_person(client, ledger_id, name, **extra)
    assert resp.status_code == 201, f"make_person failed: {resp.get_json()}"
    return resp.get_json()["data"]


def record(
    client,
    ledger_id: int,
    amount: str,
    spent_by: str | None = None,
    txn_type: str = "expense",
    category: str | None = "personal",
    description: str = "Test entry",
    date: str = "1",
    **extra,
):
    """
    Records a transaction and returns the HTTP response.
    For a common expense pass category="common" and leave spent_by as None.
    """
    payload: dict = {
        "amount": amount,
        "description": description,
        "date": date,
        "type": txn_type,
        **extra,
    }
    if category is not None:
        payload["category"] = category
    if spent_by is not None:
        payload["spent_by"] = spent_by

    return client.post(f"/api/v1/ledgers/{ledger_id}/transactions", json=payload)
