"""Initial schema — ledgers, people and transactions.

Revision: 001_initial_schema

Append-only: never edit this file once it has been applied to a database.
Schema changes go into a new revision.

Creation order follows FK dependencies: ledgers → people → transactions.

Enums are stored as VARCHAR + CHECK (native_enum=False in the models), so
there are no PostgreSQL TYPEs to create or drop and the same revision runs
on SQLite.

ON DELETE policies:
  people.ledger_id        → CASCADE
  transactions.ledger_id  → CASCADE
  transactions.spent_by   → no FK (removed people leave orphaned references)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    # ── ledgers ────────────────────────────────────────────────────────────

    op.create_table(
        "ledgers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("card_name", sa.String(100), nullable=True),
        sa.Column("last_four_digits", sa.String(4), nullable=True),
        sa.Column("issuing_bank", sa.String(100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_ledgers"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_ledgers_name_nonempty",
        ),
    )

    # ── people ─────────────────────────────────────────────────────────────

    op.create_table(
        "people",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "ledger_id",
            sa.Integer(),
            sa.ForeignKey("ledgers.id", ondelete="CASCADE", name="fk_people_ledger"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "is_card_owner",
            sa.Boolean(),
            nullable=False,
            server_default="0",
        ),
        sa.Column(
            "role",
            sa.Enum(
                "owner", "member", "guest",
                name="person_role_enum",
                native_enum=False,
            ),
            nullable=True,
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_people"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_people_name_nonempty",
        ),
    )

    # ── transactions ───────────────────────────────────────────────────────

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "ledger_id",
            sa.Integer(),
            sa.ForeignKey("ledgers.id", ondelete="CASCADE", name="fk_transactions_ledger"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(20, 10), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("date", sa.String(32), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "expense", "payment",
                name="transaction_type_enum",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column(
            "category",
            sa.Enum(
                "personal", "common",
                name="transaction_category_enum",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("spent_by", sa.String(36), nullable=False),
        sa.Column(
            "is_common_split",
            sa.Boolean(),
            nullable=False,
            server_default="0",
        ),
        sa.Column("split_group_id", sa.String(36), nullable=True),
        sa.Column("credit_card_id", sa.String(64), nullable=True),
        sa.Column("statement_month", sa.Integer(), nullable=True),
        sa.Column("statement_year", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.CheckConstraint(
            "amount >= 0",
            name="ck_transactions_amount_non_negative",
        ),
        sa.CheckConstraint(
            "statement_month IS NULL OR (statement_month BETWEEN 1 AND 12)",
            name="ck_transactions_statement_month_range",
        ),
    )

    # ── Indexes ────────────────────────────────────────────────────────────

    op.create_index("ix_people_ledger_id", "people", ["ledger_id"])
    op.create_index("ix_transactions_ledger_id", "transactions", ["ledger_id"])
    op.create_index("ix_transactions_spent_by", "transactions", ["spent_by"])
    op.create_index("ix_transactions_split_group_id", "transactions", ["split_group_id"])

    # Balance and history queries filter by statement period.
    op.create_index(
        "idx_transactions_ledger_period",
        "transactions",
        ["ledger_id", "statement_year", "statement_month"],
    )


def downgrade() -> None:
    op.drop_index("idx_transactions_ledger_period", table_name="transactions")
    op.drop_index("ix_transactions_split_group_id", table_name="transactions")
    op.drop_index("ix_transactions_spent_by",       table_name="transactions")
    op.drop_index("ix_transactions_ledger_id",      table_name="transactions")
    op.drop_index("ix_people_ledger_id",            table_name="people")

    op.drop_table("transactions")
    op.drop_table("people")
    op.drop_table("ledgers")
