"""
Test suite for RefreshTokenDB CRUD operations.

Run tests:
    pytest tests/core/db/crud/test_refresh_token_crud.py -v
"""

import pytest

from app.core.db.crud import refresh_token_db


class TestStore:
    """Test suite for the single-token-per-phone store."""

    async def test_store_creates_record(self, db_session):
        record = await refresh_token_db.store(db_session, "+15551234567", "token-1")

        assert record.phone_number == "+15551234567"
        assert record.token == "token-1"

    async def test_store_overwrites_previous_token(self, db_session):
        await refresh_token_db.store(db_session, "+15551234567", "token-1")
        await refresh_token_db.store(db_session, "+15551234567", "token-2")

        record = await refresh_token_db.get_by_key(db_session, "+15551234567")
        assert record.token == "token-2"
        rows = await refresh_token_db.get_by_conditions(db_session, [])
        assert len(rows) == 1

    async def test_store_keeps_numbers_apart(self, db_session):
        await refresh_token_db.store(db_session, "+15551234567", "a")
        await refresh_token_db.store(db_session, "+15557654321", "b")

        assert (await refresh_token_db.get_by_key(db_session, "+15551234567")).token == "a"
        assert (await refresh_token_db.get_by_key(db_session, "+15557654321")).token == "b"

    async def test_upsert_requires_key(self, db_session):
        with pytest.raises(ValueError):
            await refresh_token_db.upsert(db_session, {"token": "x"})


class TestDelete:

    async def test_delete_reports_whether_row_existed(self, db_session):
        await refresh_token_db.store(db_session, "+15551234567", "token")

        assert await refresh_token_db.delete(db_session, "+15551234567") is True
        assert await refresh_token_db.delete(db_session, "+15551234567") is False
