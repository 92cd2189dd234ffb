"""budget tables

Revision ID: 0001
Revises:
Create Date: 2026-10-16 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _owner_fk(unique: bool = False) -> sa.Column:
    return sa.Column(
        "owner_id",
        sa.String(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=unique,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_fk(),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "date",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_transactions_owner_id", "transactions", ["owner_id"])
    op.create_index("ix_transactions_type", "transactions", ["type"])
    op.create_index("ix_transactions_category", "transactions", ["category"])
    op.create_index("ix_transactions_date", "transactions", ["date"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_fk(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("budget", sa.Numeric(12, 2), nullable=True),
    )
    op.create_index("ix_categories_owner_id", "categories", ["owner_id"])

    op.create_table(
        "month_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_fk(),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("income", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("owner_id", "year", "month"),
    )
    op.create_index("ix_month_history_owner_id", "month_history", ["owner_id"])

    op.create_table(
        "year_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_fk(),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("income", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("owner_id", "year"),
    )
    op.create_index("ix_year_history_owner_id", "year_history", ["owner_id"])

    op.create_table(
        "user_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_fk(unique=True),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("monthly_budget", sa.Numeric(12, 2), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("user_settings")
    op.drop_table("year_history")
    op.drop_table("month_history")
    op.drop_table("categories")
    op.drop_table("transactions")
    op.drop_table("users")
