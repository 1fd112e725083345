"""
RLS Notes: Pydantic Request/Response Schemas
==============================================

What:  Pydantic models defining the API contract, plus the tagged outcome
       type returned by NoteService.
Why:   Services report expected alternate results (not found, delete failed)
       as values; the route layer decides how each one is rendered. Only
       unexpected failures travel as exceptions.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteDetail(BaseModel):
    """The projected columns of a note shown on its detail page."""
    title: str = Field(description="Note title")
    body: str = Field(description="Note body text")

    model_config = {"from_attributes": True}


class NoteDetailResponse(BaseModel):
    """
    What:  JSON payload of GET /rls/notes/{note_id}.
    Shape: {"note": {"title": ..., "body": ...}}
    """
    note: NoteDetail


class NoteListItem(BaseModel):
    id: str = Field(description="Opaque note identifier")
    title: str = Field(description="Note title")

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    """JSON payload of GET /rls/notes."""
    notes: List[NoteListItem] = Field(description="Notes visible to the session, newest first")


class NoteDeleteError(BaseModel):
    """
    Body of a failed delete. Kept to the single `error` field: clients
    branch on this exact code.
    """
    error: str = Field(description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for handled API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID 'zzz' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


# ══════════════════════════════════════════════════════════════════════════
# Note Operation Outcomes
# ══════════════════════════════════════════════════════════════════════════
#
#   view:   NoteViewOutcome   = NoteFound | NoteNotFound
#   delete: NoteDeleteOutcome = NoteDeleted | NoteServerError
#
# `kind` tags each variant; the rendering layer dispatches on it. `status_code`
# is the HTTP-equivalent each outcome maps to, used by the catch boundary.

SERVER_ERROR_DELETING_NOTE = "server-error-deleting-note"


class NoteFound(BaseModel):
    kind: Literal["found"] = "found"
    status_code: Literal[200] = 200
    note: NoteDetail


class NoteNotFound(BaseModel):
    kind: Literal["not_found"] = "not_found"
    status_code: Literal[404] = 404
    note_id: str


class NoteDeleted(BaseModel):
    kind: Literal["deleted"] = "deleted"
    status_code: Literal[302] = 302
    note_id: str


class NoteServerError(BaseModel):
    kind: Literal["server_error"] = "server_error"
    status_code: Literal[500] = 500
    code: str


NoteViewOutcome = Annotated[
    Union[NoteFound, NoteNotFound],
    Field(discriminator="kind"),
]

NoteDeleteOutcome = Annotated[
    Union[NoteDeleted, NoteServerError],
    Field(discriminator="kind"),
]
