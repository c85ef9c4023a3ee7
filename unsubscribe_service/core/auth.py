"""Basic-auth credential gate for the unsubscribe endpoints."""

import logging
import secrets

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.errors import UnauthorizedCredentials

logger = logging.getLogger(__name__)

# HTTP Basic security scheme; missing header is handled below, not by FastAPI
basic_scheme = HTTPBasic(auto_error=False)


def credentials_match(credentials: HTTPBasicCredentials, settings: Settings) -> bool:
    """Constant-time comparison against the configured manage credentials.

    An unset username never matches, so an unconfigured gate rejects everything.
    """
    if not settings.manage_username:
        return False
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.manage_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.manage_password.encode("utf-8")
    )
    return username_ok and password_ok


async def require_manage_credentials(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(basic_scheme),
) -> str:
    """FastAPI dependency: reject the request unless valid basic-auth credentials are sent.

    Returns:
        The authenticated username.

    Raises:
        UnauthorizedCredentials: If the header is missing or the credentials don't match.
    """
    if credentials is None:
        raise UnauthorizedCredentials()

    settings: Settings = request.app.state.settings
    if not credentials_match(credentials, settings):
        logger.warning("Rejected credentials for user %r on %s", credentials.username, request.url.path)
        raise UnauthorizedCredentials()
    return credentials.username

