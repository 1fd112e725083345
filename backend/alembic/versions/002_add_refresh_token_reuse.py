"""Track the previous refresh token of each auth session

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 12:00:00.000000+00:00

What:  Adds `previous_refresh_token` and `refreshed_at` to `auth_sessions`.
How:   AuthSessionStore.refresh() keeps the token it just rotated out and the
       rotation time. Presenting that token again within
       REFRESH_TOKEN_REUSE_INTERVAL returns the current session instead of
       failing.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "auth_sessions",
        sa.Column("previous_refresh_token", sa.String(128), nullable=True),
    )
    op.add_column(
        "auth_sessions",
        sa.Column("refreshed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_auth_sessions_previous_refresh_token",
        "auth_sessions",
        ["previous_refresh_token"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_auth_sessions_previous_refresh_token", table_name="auth_sessions")
    op.drop_column("auth_sessions", "refreshed_at")
    op.drop_column("auth_sessions", "previous_refresh_token")
