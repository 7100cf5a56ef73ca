"""Initial schema — weights and weight_goals.

Revision ID: 001_weight_tables
Revises: None
Create Date: 2025-10-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_weight_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "weights",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_sub", sa.String(255), nullable=False),
        sa.Column("value", sa.Numeric(6, 2), nullable=False),
        sa.Column(
            "recorded_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_user_time", "weights", ["user_sub", "recorded_at"])

    op.create_table(
        "weight_goals",
        sa.Column("user_sub", sa.String(255), primary_key=True),
        sa.Column("value", sa.Numeric(6, 2), nullable=False),
        sa.Column(
            "recorded_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("weight_goals")
    op.drop_index("idx_user_time", table_name="weights")
    op.drop_table("weights")
