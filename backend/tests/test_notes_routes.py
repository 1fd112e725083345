"""
RLS Notes: Notes Route Tests
==============================

What:  HTTP contract of /rls/notes and /rls/notes/{note_id}.
How:   HTTPX AsyncClient over ASGITransport; the data client and session
       store are test doubles (see conftest.py), so no database is needed.

Example note used throughout:
    {id: "abc", title: "Groceries", body: "milk, eggs"}
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import IntegrityError

from rlsnotes.auth.session import session_cookie
from rlsnotes.config import settings

GROCERIES = SimpleNamespace(title="Groceries", body="milk, eggs")
JSON = {"Accept": "application/json"}


def session_from_set_cookie(response):
    header = response.headers["set-cookie"]
    name, _, rest = header.partition("=")
    assert name == settings.session_cookie_name
    return session_cookie.load(rest.split(";", 1)[0])


class TestViewNote:

    @pytest.mark.asyncio
    async def test_view_renders_title_and_body(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.one_or_none.return_value = GROCERIES

        response = await test_client.get("/rls/notes/abc", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Groceries" in response.text
        assert "milk, eggs" in response.text
        assert 'name="_method" value="delete"' in response.text

    @pytest.mark.asyncio
    async def test_view_json_payload(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.one_or_none.return_value = GROCERIES

        response = await test_client.get("/rls/notes/abc", headers={**auth_headers, **JSON})

        assert response.status_code == 200
        assert response.json() == {"note": {"title": "Groceries", "body": "milk, eggs"}}

    @pytest.mark.asyncio
    async def test_view_escapes_note_content(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.one_or_none.return_value = SimpleNamespace(
            title="<script>alert(1)</script>", body="ok"
        )

        response = await test_client.get("/rls/notes/abc", headers=auth_headers)

        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;script&gt;" in response.text

    @pytest.mark.asyncio
    async def test_view_missing_note_is_404(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.one_or_none.return_value = None

        response = await test_client.get("/rls/notes/zzz", headers=auth_headers)

        assert response.status_code == 404
        assert "Note not found" in response.text
        assert "An unexpected error occurred" not in response.text

    @pytest.mark.asyncio
    async def test_view_missing_note_json(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.one_or_none.return_value = None

        response = await test_client.get("/rls/notes/zzz", headers={**auth_headers, **JSON})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_missing_note_goes_through_catch_boundary(
        self, test_client, mock_db_session, auth_session, auth_headers
    ):
        """The 404 is rendered from the NoteNotFound outcome, so it still re-commits the session."""
        mock_db_session.execute.return_value.one_or_none.return_value = None

        response = await test_client.get("/rls/notes/zzz", headers={**auth_headers, **JSON})

        body = response.json()
        assert body["message"] == "Note not found"
        assert body["request_id"] == response.headers["x-request-id"]
        assert session_from_set_cookie(response) == auth_session

    @pytest.mark.asyncio
    async def test_view_uses_session_token_and_recommits_cookie(
        self, test_client, data_client, mock_db_session, auth_session, auth_headers
    ):
        mock_db_session.execute.return_value.one_or_none.return_value = GROCERIES

        response = await test_client.get("/rls/notes/abc", headers=auth_headers)

        assert data_client.tokens == [auth_session.access_token]
        assert session_from_set_cookie(response) == auth_session

    @pytest.mark.asyncio
    async def test_view_without_session_is_401(self, test_client, data_client):
        response = await test_client.get("/rls/notes/abc")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert data_client.tokens == []

    @pytest.mark.asyncio
    async def test_view_store_error_renders_error_boundary(
        self, test_client, mock_db_session, auth_headers
    ):
        mock_db_session.execute.side_effect = IntegrityError("select", {}, Exception("x"))

        response = await test_client.get("/rls/notes/abc", headers=auth_headers)

        assert response.status_code == 500
        assert "An unexpected error occurred" in response.text


class TestDeleteNote:

    @pytest.mark.asyncio
    async def test_delete_redirects_to_listing_with_cookie(
        self, test_client, data_client, mock_db_session, auth_session, auth_headers
    ):
        mock_db_session.execute.return_value.rowcount = 1

        response = await test_client.delete("/rls/notes/abc", headers=auth_headers)

        assert response.status_code == 302
        assert response.headers["location"] == "/rls/notes"
        assert session_from_set_cookie(response) == auth_session
        assert data_client.tokens == [auth_session.access_token]

    @pytest.mark.asyncio
    async def test_delete_failure_is_500_with_code_and_cookie(
        self, test_client, mock_db_session, auth_session, auth_headers
    ):
        mock_db_session.execute.side_effect = IntegrityError("delete", {}, Exception("fk"))

        response = await test_client.delete("/rls/notes/abc", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "server-error-deleting-note"}
        assert session_from_set_cookie(response) == auth_session

    @pytest.mark.asyncio
    async def test_delete_missing_note_redirects(self, test_client, mock_db_session, auth_headers):
        """Deleting an absent id affects zero rows and is treated as success."""
        mock_db_session.execute.return_value.rowcount = 0

        response = await test_client.delete("/rls/notes/zzz", headers=auth_headers)

        assert response.status_code == 302
        assert response.headers["location"] == "/rls/notes"

    @pytest.mark.asyncio
    async def test_form_post_with_override_deletes(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.rowcount = 1

        response = await test_client.post(
            "/rls/notes/abc", data={"_method": "delete"}, headers=auth_headers
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/rls/notes"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "PATCH", "POST"])
    async def test_non_delete_method_never_reaches_store(
        self, test_client, data_client, mock_db_session, session_store, auth_headers, method
    ):
        response = await test_client.request(method, "/rls/notes/abc", headers=auth_headers)

        assert response.status_code == 405
        assert response.headers["allow"] == "DELETE"
        assert data_client.tokens == []
        mock_db_session.execute.assert_not_awaited()
        session_store.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_delete_method_rejected_before_session_check(self, test_client):
        """Method misuse is reported even without a session."""
        response = await test_client.put("/rls/notes/abc")

        assert response.status_code == 405

    @pytest.mark.asyncio
    async def test_delete_without_session_is_401(self, test_client, data_client):
        response = await test_client.delete("/rls/notes/abc")

        assert response.status_code == 401
        assert data_client.tokens == []

    @pytest.mark.asyncio
    async def test_expiring_session_is_refreshed_before_delete(
        self,
        test_client,
        data_client,
        mock_db_session,
        session_store,
        auth_session,
        expiring_auth_session,
        cookie_for,
    ):
        refreshed = auth_session.model_copy(
            update={"access_token": "access-token-2", "refresh_token": "refresh-token-2"}
        )
        session_store.refresh.return_value = refreshed
        mock_db_session.execute.return_value.rowcount = 1

        response = await test_client.delete(
            "/rls/notes/abc", headers=cookie_for(expiring_auth_session)
        )

        assert response.status_code == 302
        # Only the refreshed token is used, and the refreshed session is committed
        assert data_client.tokens == ["access-token-2"]
        assert session_from_set_cookie(response) == refreshed


class TestListNotes:

    @pytest.mark.asyncio
    async def test_list_renders_links(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.all.return_value = [
            SimpleNamespace(id="abc", title="Groceries"),
        ]

        response = await test_client.get("/rls/notes", headers=auth_headers)

        assert response.status_code == 200
        assert 'href="/rls/notes/abc"' in response.text
        assert "Groceries" in response.text
        assert "set-cookie" in response.headers

    @pytest.mark.asyncio
    async def test_list_json(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value.all.return_value = [
            SimpleNamespace(id="abc", title="Groceries"),
        ]

        response = await test_client.get("/rls/notes", headers={**auth_headers, **JSON})

        assert response.json() == {"notes": [{"id": "abc", "title": "Groceries"}]}


class TestErrorBoundary:

    @pytest.mark.asyncio
    async def test_uncaught_exception_renders_message(self, data_client, session_store, auth_headers):
        """Any uncaught failure while loading is rendered with its message text."""
        from rlsnotes.auth.session import get_session_store
        from rlsnotes.database import get_data_client
        from rlsnotes.main import app
        from rlsnotes.services.note_service import get_note_service

        class ExplodingService:
            async def get_note(self, *args):
                raise RuntimeError("boom")

        app.dependency_overrides[get_data_client] = lambda: data_client
        app.dependency_overrides[get_session_store] = lambda: session_store
        app.dependency_overrides[get_note_service] = lambda: ExplodingService()
        # Starlette re-raises after the fallback handler responds
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/rls/notes/abc", headers=auth_headers)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert "An unexpected error occurred: boom" in response.text
