"""Add users.total_xp and the xp_transactions ledger.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "users",
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "xp_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("attempt_id", sa.String(36), nullable=False),
        sa.Column("task_index", sa.Integer(), nullable=False),
        sa.Column("xp_amount", sa.Integer(), nullable=False),
        sa.Column("task_level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["attempt_id"], ["attempts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("attempt_id", "task_index", name="uq_xp_transactions_attempt_task"),
    )
    op.create_index(op.f("ix_xp_transactions_user_id"), "xp_transactions", ["user_id"], unique=False)
    op.create_index(op.f("ix_xp_transactions_attempt_id"), "xp_transactions", ["attempt_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_xp_transactions_attempt_id"), table_name="xp_transactions")
    op.drop_index(op.f("ix_xp_transactions_user_id"), table_name="xp_transactions")
    op.drop_table("xp_transactions")
    op.drop_column("users", "total_xp")
