"""
RLS Notes: Notes Route Handlers
=================================

What:  GET /rls/notes (listing), GET /rls/notes/{note_id} (view) and the
       delete action on /rls/notes/{note_id}.
How:   Resolve the session, call NoteService with it, render the outcome,
       then commit that same session onto the response.

Request flow:
    view:    session → get_note → NoteFound → page/JSON (200)
                                → NoteNotFound → catch boundary (404)
    delete:  assert_is_delete → session → delete_note
                                → NoteDeleted → 302 /rls/notes
                                → NoteServerError → 500 {"error": ...}

Every response produced after session resolution carries Set-Cookie,
including the 404 page and the 500 delete failure.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from starlette.responses import Response

from rlsnotes.auth.session import (
    AuthSession,
    AuthSessionStore,
    commit_auth_session,
    get_session_store,
    require_auth_session,
)
from rlsnotes.database import DataClient, get_data_client
from rlsnotes.rendering import render_delete, render_note, render_note_list
from rlsnotes.schemas.note import (
    ErrorResponse,
    NoteDeleteError,
    NoteDetailResponse,
    NoteListResponse,
)
from rlsnotes.services.note_service import NoteService, get_note_service
from rlsnotes.utils.http import assert_is_delete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rls/notes", tags=["Notes"])


@router.get(
    "",
    response_class=HTMLResponse,
    responses={
        200: {"description": "Notes visible to the session", "model": NoteListResponse},
        401: {"description": "No valid session", "model": ErrorResponse},
    },
    summary="List the caller's notes",
)
async def list_notes(
    request: Request,
    auth_session: AuthSession = Depends(require_auth_session),
    data_client: DataClient = Depends(get_data_client),
    service: NoteService = Depends(get_note_service),
) -> Response:
    listing = await service.list_notes(data_client, auth_session)
    return commit_auth_session(render_note_list(request, listing), auth_session)


@router.get(
    "/{note_id}",
    response_class=HTMLResponse,
    responses={
        200: {"description": "Note title and body", "model": NoteDetailResponse},
        401: {"description": "No valid session", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="View a single note",
    description=(
        "Renders the note's title, body and a delete form. Clients sending "
        "`Accept: application/json` receive `{\"note\": {\"title\", \"body\"}}` instead."
    ),
)
async def view_note(
    request: Request,
    note_id: str,
    auth_session: AuthSession = Depends(require_auth_session),
    data_client: DataClient = Depends(get_data_client),
    service: NoteService = Depends(get_note_service),
) -> Response:
    outcome = await service.get_note(data_client, auth_session, note_id)
    return commit_auth_session(render_note(request, outcome), auth_session)


@router.api_route(
    "/{note_id}",
    methods=["DELETE", "POST", "PUT", "PATCH"],
    responses={
        302: {"description": "Deleted; redirect to the notes listing"},
        401: {"description": "No valid session", "model": ErrorResponse},
        405: {"description": "Request did not carry delete intent", "model": ErrorResponse},
        500: {"description": "The store rejected the delete", "model": NoteDeleteError},
    },
    summary="Delete a single note",
    description=(
        "Deletes the note and redirects to the listing. Accepts DELETE, or a form "
        "POST with `_method=delete`; any other method is rejected with 405 before "
        "the session or the store is touched."
    ),
)
async def delete_note(
    request: Request,
    note_id: str,
    store: AuthSessionStore = Depends(get_session_store),
    data_client: DataClient = Depends(get_data_client),
    service: NoteService = Depends(get_note_service),
) -> Response:
    # Method check comes first: a non-delete request must not read the
    # session (which may refresh tokens) or reach the store.
    await assert_is_delete(request)

    auth_session = await require_auth_session(request, store)
    outcome = await service.delete_note(data_client, auth_session, note_id)
    return commit_auth_session(render_delete(outcome), auth_session)
