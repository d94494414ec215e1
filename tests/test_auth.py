"""Unit tests for API key authentication."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from persona_engine.auth.middleware import get_caller, hash_api_key


def db_returning(client):
    result = MagicMock()
    result.scalar_one_or_none.return_value = client
    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    return db


def test_hash_is_salted_and_stable():
    assert hash_api_key("sk_demo_persona_12345") == hash_api_key("sk_demo_persona_12345")
    assert hash_api_key("sk_demo_persona_12345") != hash_api_key("sk_other")
    assert len(hash_api_key("x")) == 64


@pytest.mark.parametrize("header", [None, "Token abc", "Bearer ", "Bearer    "])
async def test_missing_or_malformed_header_is_401(header):
    db = db_returning(None)
    with pytest.raises(HTTPException) as exc_info:
        await get_caller(db, header)
    assert exc_info.value.status_code == 401
    db.execute.assert_not_awaited()


async def test_unknown_key_is_403():
    with pytest.raises(HTTPException) as exc_info:
        await get_caller(db_returning(None), "Bearer sk_unknown")
    assert exc_info.value.status_code == 403


async def test_known_key_resolves_client():
    known = SimpleNamespace(client_id="c-1", name="persona-admin", tenant_id="demo")
    assert await get_caller(db_returning(known), "Bearer sk_demo_persona_12345") is known
