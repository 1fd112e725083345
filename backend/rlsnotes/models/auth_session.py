"""
RLS Notes: Auth Session SQLAlchemy Model
==========================================

What:  Server-side record of an issued auth session (the `auth_sessions` table).
Why:   The RLS function request_user_id() maps the access token bound to a
       transaction back to a user through this table; the session store
       rotates tokens here on refresh.

This table has no row-level security. Only AuthSessionStore touches it, and
the SECURITY DEFINER function reads it on behalf of RLS policies.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import TIMESTAMP

from rlsnotes.database import Base


class AuthSessionRecord(Base):
    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    access_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    refresh_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    # Rotated-out refresh token, still accepted briefly after refreshed_at
    previous_refresh_token: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, unique=True, index=True
    )
    refreshed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        # Tokens are credentials; keep them out of logs and tracebacks
        return f"<AuthSessionRecord(id={self.id!r}, user_id={self.user_id!r})>"
