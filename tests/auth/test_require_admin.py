"""Tests for the admin HTTP Basic gate."""

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPBasicCredentials

from app.auth.dependencies import require_admin


@pytest.mark.asyncio
async def test_valid_credentials_return_user():
    credentials = HTTPBasicCredentials(username="admin", password="test-pass")

    assert await require_admin(credentials) == "admin"


@pytest.mark.asyncio
async def test_missing_credentials():
    with pytest.raises(HTTPException) as exc_info:
        await require_admin(None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Credenciales requeridas"
    assert exc_info.value.headers == {"WWW-Authenticate": 'Basic realm="admin-api"'}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username, password",
    [("admin", "wrong"), ("root", "test-pass"), ("", ""), ("admín", "test-pass")],
)
async def test_invalid_credentials(username, password):
    credentials = HTTPBasicCredentials(username=username, password=password)

    with pytest.raises(HTTPException) as exc_info:
        await require_admin(credentials)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Credenciales invalidas"
