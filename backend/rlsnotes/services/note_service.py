"""
RLS Notes: Note Service
=========================

What:  The note operations behind the /rls/notes routes: view one note,
       delete one note, list the caller's notes.
How:   Each operation opens one RLS-scoped transaction with the caller's
       access token and runs exactly one statement. No retries: a missing
       row is not transient.
Who:   Called by routes/notes.py with the resolved AuthSession.

Outcomes instead of exceptions:
    get_note()    → NoteFound | NoteNotFound     (store failure: DatabaseError)
    delete_note() → NoteDeleted | NoteServerError

    The route maps outcomes to responses. Raised exceptions are reserved for
    failures the route has no rendering for (broken invariants, read errors).

Deleting a missing note:
    The delete has no RETURNING clause and never checks existence first. An id
    that does not exist, or that RLS hides from this user, affects zero rows,
    and that is reported as NoteDeleted. Only an error raised by the store
    produces NoteServerError.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from rlsnotes.auth.session import AuthSession
from rlsnotes.database import DataClient
from rlsnotes.exceptions import DatabaseError
from rlsnotes.models.note import Note
from rlsnotes.schemas.note import (
    SERVER_ERROR_DELETING_NOTE,
    NoteDeleted,
    NoteDeleteOutcome,
    NoteDetail,
    NoteFound,
    NoteListItem,
    NoteListResponse,
    NoteNotFound,
    NoteServerError,
    NoteViewOutcome,
)
from rlsnotes.utils.http import invariant

logger = logging.getLogger(__name__)


class NoteService:
    """
    Stateless note operations.

    Every method takes the DataClient and the AuthSession explicitly; nothing
    is read from ambient request state.
    """

    async def get_note(
        self,
        data_client: DataClient,
        auth_session: AuthSession,
        note_id: str,
    ) -> NoteViewOutcome:
        """
        Fetch the title and body of one note.

        Query plan:
            SELECT title, body FROM "Note" WHERE id = :note_id
            (RLS adds: AND user_id = request_user_id())

        Raises:
            InvariantError: note_id is empty (routing defect)
            DatabaseError:  Query execution failed (→ 500)
        """
        invariant(note_id, "noteId not found")

        try:
            async with data_client.scoped(auth_session.access_token) as db:
                result = await db.execute(
                    select(Note.title, Note.body).where(Note.id == note_id)
                )
                row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id},
            )

        if row is None:
            logger.info("Note %s not found for user %s", note_id, auth_session.user_id)
            return NoteNotFound(note_id=note_id)

        return NoteFound(note=NoteDetail(title=row.title, body=row.body))

    async def delete_note(
        self,
        data_client: DataClient,
        auth_session: AuthSession,
        note_id: str,
    ) -> NoteDeleteOutcome:
        """
        Delete one note by id, without returning the deleted row.

        Returns NoteServerError(code="server-error-deleting-note") on any
        store error: constraint violation, lost connection, and so on are not
        distinguished.
        """
        invariant(note_id, "noteId not found")

        try:
            async with data_client.scoped(auth_session.access_token) as db:
                result = await db.execute(delete(Note).where(Note.id == note_id))
        except SQLAlchemyError as e:
            logger.error(
                "Database error deleting note %s for user %s: %s",
                note_id,
                auth_session.user_id,
                str(e),
            )
            return NoteServerError(code=SERVER_ERROR_DELETING_NOTE)

        logger.info(
            "Deleted note %s for user %s (rows affected: %s)",
            note_id,
            auth_session.user_id,
            result.rowcount,
        )
        return NoteDeleted(note_id=note_id)

    async def list_notes(
        self,
        data_client: DataClient,
        auth_session: AuthSession,
    ) -> NoteListResponse:
        """
        List the notes visible to the session, most recently updated first.

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            async with data_client.scoped(auth_session.access_token) as db:
                result = await db.execute(
                    select(Note.id, Note.title).order_by(Note.updated_at.desc())
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e))
            raise DatabaseError(message="Could not load your notes. Please try again.")

        return NoteListResponse(
            notes=[NoteListItem(id=row.id, title=row.title) for row in rows]
        )


# Singleton instance, imported by route handlers
note_service = NoteService()


def get_note_service() -> NoteService:
    """FastAPI dependency returning the note service."""
    return note_service
