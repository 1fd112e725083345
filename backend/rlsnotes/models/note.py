"""
RLS Notes: Note SQLAlchemy Model
==================================

What:  ORM model representing the "Note" table in PostgreSQL.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Queried by NoteService through the RLS-scoped DataClient.

Table Design:
    - id: opaque text key. Path parameters are passed through untouched, so an
      id that is not a UUID simply matches no row (404) instead of failing
      request validation.
    - user_id: owner of the row; the RLS policies compare it with
      request_user_id(), which resolves the caller's access token.
    - Index on (user_id, updated_at DESC) serves the per-user listing.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import TIMESTAMP

from rlsnotes.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user's note.

    Lifecycle:
        Created and edited outside this service; read, listed and deleted here.
        Visibility is decided by the database (RLS), never by a WHERE clause
        on user_id in application code.
    """

    __tablename__ = "Note"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        server_default=text("gen_random_uuid()::text"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False, default="")

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owner; compared with request_user_id() by the RLS policies",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_note_user_updated_at", user_id, updated_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id!r}, title={self.title!r})>"
