import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.core.config import settings

logger = logging.getLogger(__name__)

ADMIN_REALM = 'Basic realm="admin-api"'

basic_auth = HTTPBasic(realm="admin-api", auto_error=False)


def _matches(candidate: str, expected: str) -> bool:
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_auth)],
) -> str:
    """Check admin HTTP Basic credentials and return the admin user name."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales requeridas",
            headers={"WWW-Authenticate": ADMIN_REALM},
        )

    valid_user = _matches(credentials.username, settings.ADMIN_BASIC_USER)
    valid_pass = _matches(credentials.password, settings.ADMIN_BASIC_PASS)
    if not (valid_user and valid_pass):
        logger.warning("Rejected admin credentials for user %r", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales invalidas",
            headers={"WWW-Authenticate": ADMIN_REALM},
        )

    return credentials.username
