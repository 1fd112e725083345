"""
RLS Notes: Rendering & Boundaries
===================================

What:  Turns NoteService outcomes into HTTP responses: Jinja2 pages for
       browsers, JSON for API clients, redirects for successful deletes.
How:   Three layers, mirroring how a page handles its own results:
       - render_*      : the normal page for a successful outcome
       - render_caught : the catch boundary for expected non-2xx statuses
                         (only 404 has a page; anything else is escalated)
       - render_error  : the error boundary for uncaught exceptions

Session cookies are NOT set here; the route commits the session onto
whatever response comes back.
"""

import logging
from pathlib import Path

from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from rlsnotes.config import settings
from rlsnotes.exceptions import UnexpectedResponseError
from rlsnotes.middleware.request_id import request_id_var
from rlsnotes.schemas.note import (
    ErrorResponse,
    NoteDeleteError,
    NoteDeleteOutcome,
    NoteDetailResponse,
    NoteListResponse,
    NoteViewOutcome,
)
from rlsnotes.utils.http import wants_json

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

NOTE_NOT_FOUND_MESSAGE = "Note not found"


# ══════════════════════════════════════════════════════════════════════════
# Normal Rendering
# ══════════════════════════════════════════════════════════════════════════


def render_note(request: Request, outcome: NoteViewOutcome) -> Response:
    """Render the detail page, or hand a non-200 outcome to the catch boundary."""
    if outcome.kind != "found":
        return render_caught(request, outcome.status_code)

    if wants_json(request):
        return JSONResponse(content=NoteDetailResponse(note=outcome.note).model_dump())

    return templates.TemplateResponse(
        request,
        "note_detail.html",
        {"note": outcome.note},
    )


def render_note_list(request: Request, listing: NoteListResponse) -> Response:
    if wants_json(request):
        return JSONResponse(content=listing.model_dump())

    return templates.TemplateResponse(
        request,
        "note_list.html",
        {"notes": listing.notes, "notes_index_path": settings.notes_index_path},
    )


def render_delete(outcome: NoteDeleteOutcome) -> Response:
    """
    Map a delete outcome to its response.

    NoteDeleted     → 302 to the notes listing
    NoteServerError → 500 {"error": <code>}
    """
    if outcome.kind == "deleted":
        return RedirectResponse(url=settings.notes_index_path, status_code=302)

    if outcome.kind == "server_error":
        return JSONResponse(
            status_code=outcome.status_code,
            content=NoteDeleteError(error=outcome.code).model_dump(),
        )

    raise UnexpectedResponseError(getattr(outcome, "status_code", 500))


# ══════════════════════════════════════════════════════════════════════════
# Boundaries
# ══════════════════════════════════════════════════════════════════════════


def render_caught(request: Request, status_code: int) -> Response:
    """
    Catch boundary for expected non-2xx statuses.

    404 renders the fixed "Note not found" message. Any other status was not
    designed for; it is escalated as UnexpectedResponseError and ends up in
    the error boundary instead of being rendered as something it is not.
    """
    if status_code != 404:
        raise UnexpectedResponseError(status_code)

    if wants_json(request):
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error="not_found",
                message=NOTE_NOT_FOUND_MESSAGE,
                request_id=request_id_var.get(""),
            ).model_dump(exclude_none=True),
        )

    return templates.TemplateResponse(
        request,
        "note_not_found.html",
        {"message": NOTE_NOT_FOUND_MESSAGE},
        status_code=404,
    )


def render_error(request: Request, exc: Exception, status_code: int = 500) -> Response:
    """Error boundary page: shows the failure's message text."""
    message = getattr(exc, "message", None) or str(exc)
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": message, "request_id": request_id_var.get("")},
        status_code=status_code,
    )
