"""
RLS Notes: HTTP Helpers
=========================

Small request-level guards shared by the note routes.
"""

import logging
from typing import Any

from starlette.requests import Request

from rlsnotes.exceptions import InvariantError, MethodNotAllowedError

logger = logging.getLogger(__name__)

# HTML forms can only submit GET and POST, so the delete form posts with this
# hidden field set to "delete".
METHOD_OVERRIDE_FIELD = "_method"

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def invariant(condition: Any, message: str) -> None:
    """Raise InvariantError when a routing-guaranteed precondition is false."""
    if not condition:
        raise InvariantError(message)


async def _form_method_override(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_FORM_CONTENT_TYPES):
        return None
    form = await request.form()
    value = form.get(METHOD_OVERRIDE_FIELD)
    return value.upper() if isinstance(value, str) else None


async def assert_is_delete(request: Request) -> None:
    """
    Reject any request that does not carry delete intent.

    Delete intent is either the DELETE method itself or a form POST whose
    `_method` field is "delete". Everything else raises MethodNotAllowedError
    (405) before the caller reads the session or touches the data store.
    """
    method = request.method.upper()
    if method == "DELETE":
        return
    if method == "POST" and await _form_method_override(request) == "DELETE":
        return
    logger.warning("Rejected %s %s: delete intent required", method, request.url.path)
    raise MethodNotAllowedError(method=method, allowed="DELETE")


def wants_json(request: Request) -> bool:
    """
    True when the client asked for JSON and not HTML.

    Browsers send text/html in Accept; API clients and fetch() calls that
    set `Accept: application/json` get the loader payload instead of a page.
    """
    accept = request.headers.get("accept", "").lower()
    return "application/json" in accept and "text/html" not in accept
