"""create users table

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("aad_object_id", sa.String(length=36), nullable=False),
        sa.Column("user_role", sa.SmallInteger(), nullable=False),
        sa.Column("bot_installed_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_principal_name", sa.String(), nullable=True),
        sa.Column("conversation_id", sa.String(), nullable=True),
        sa.Column("service_url", sa.String(), nullable=True),
        sa.Column("opted_in", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("aad_object_id"),
    )
    op.create_index("ix_users_user_role", "users", ["user_role"])


def downgrade() -> None:
    op.drop_index("ix_users_user_role", table_name="users")
    op.drop_table("users")
