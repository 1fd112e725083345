"""
RLS Notes: DataClient Tests
=============================

What:  The RLS-scoped session binds the access token before any query and
       owns the transaction boundary.
"""

import pytest

from rlsnotes.database import ACCESS_TOKEN_SETTING, DataClient


class TestDataClientScoped:

    @pytest.mark.asyncio
    async def test_binds_access_token_first(self, mock_session_factory, mock_db_session):
        client = DataClient(mock_session_factory)

        async with client.scoped("tok-123") as db:
            assert db is mock_db_session

        first_call = mock_db_session.execute.await_args_list[0]
        assert "set_config" in str(first_call.args[0])
        assert first_call.args[1] == {"name": ACCESS_TOKEN_SETTING, "token": "tok-123"}

    @pytest.mark.asyncio
    async def test_commits_on_success(self, mock_session_factory, mock_db_session):
        client = DataClient(mock_session_factory)

        async with client.scoped("tok"):
            pass

        mock_db_session.commit.assert_awaited_once()
        mock_db_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises_on_error(self, mock_session_factory, mock_db_session):
        client = DataClient(mock_session_factory)

        with pytest.raises(RuntimeError, match="boom"):
            async with client.scoped("tok"):
                raise RuntimeError("boom")

        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()
