"""One attempt per simulation and owner.

Revision ID: 003
Revises: 002
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("attempts") as batch_op:
        batch_op.create_unique_constraint("uq_attempts_simulation_user", ["simulation_id", "user_id"])
        batch_op.create_unique_constraint("uq_attempts_simulation_session", ["simulation_id", "session_id"])


def downgrade() -> None:
    with op.batch_alter_table("attempts") as batch_op:
        batch_op.drop_constraint("uq_attempts_simulation_session", type_="unique")
        batch_op.drop_constraint("uq_attempts_simulation_user", type_="unique")
