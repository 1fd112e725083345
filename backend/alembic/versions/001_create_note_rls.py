"""Create auth_sessions and Note tables with row-level security

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `auth_sessions`, the "Note" table, the request_user_id()
       function, and the RLS policies that scope "Note" to its owner.
How:   request_user_id() reads the transaction-local setting
       `request.access_token` (set by DataClient.scoped) and maps it to a
       user through an unexpired auth_sessions row. It is SECURITY DEFINER so
       the application role never needs direct SELECT on auth_sessions inside
       a policy check.

FORCE ROW LEVEL SECURITY makes the policies apply to the table owner too.
Superusers and BYPASSRLS roles still bypass them.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


NOTE_POLICIES = {
    "note_owner_select": "FOR SELECT USING (user_id = request_user_id())",
    "note_owner_insert": "FOR INSERT WITH CHECK (user_id = request_user_id())",
    "note_owner_update": (
        "FOR UPDATE USING (user_id = request_user_id()) "
        "WITH CHECK (user_id = request_user_id())"
    ),
    "note_owner_delete": "FOR DELETE USING (user_id = request_user_id())",
}


def upgrade() -> None:
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("access_token", sa.String(128), nullable=False),
        sa.Column("refresh_token", sa.String(128), nullable=False),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("access_token"),
        sa.UniqueConstraint("refresh_token"),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "Note",
        sa.Column(
            "id",
            sa.String(64),
            server_default=sa.text("gen_random_uuid()::text"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "user_id",
            sa.String(64),
            nullable=False,
            comment="Owner; compared with request_user_id() by the RLS policies",
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_note_user_updated_at",
        "Note",
        ["user_id", sa.text("updated_at DESC")],
    )

    op.execute(
        """
        CREATE FUNCTION request_user_id() RETURNS text
        LANGUAGE sql STABLE SECURITY DEFINER
        SET search_path = public
        AS $$
            SELECT user_id
            FROM auth_sessions
            WHERE access_token = current_setting('request.access_token', true)
              AND expires_at > now()
        $$
        """
    )

    op.execute('ALTER TABLE "Note" ENABLE ROW LEVEL SECURITY')
    op.execute('ALTER TABLE "Note" FORCE ROW LEVEL SECURITY')
    for name, clause in NOTE_POLICIES.items():
        op.execute(f'CREATE POLICY {name} ON "Note" {clause}')


def downgrade() -> None:
    """Drop everything created above. Destructive: all notes and sessions are lost."""
    for name in NOTE_POLICIES:
        op.execute(f'DROP POLICY IF EXISTS {name} ON "Note"')
    op.execute("DROP FUNCTION IF EXISTS request_user_id()")
    op.drop_index("idx_note_user_updated_at", table_name="Note")
    op.drop_table("Note")
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
