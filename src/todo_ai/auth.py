from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .settings import get_settings

_security = HTTPBasic(auto_error=False)

ANONYMOUS_USER_ID = "anonymous"


@dataclass(frozen=True)
class Identity:
    """The caller on whose behalf todos are read and written."""

    id: str


# PUBLIC_INTERFACE
def get_current_user(
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
    x_user_id: Optional[str] = Header(default=None),
) -> Identity:
    """
    Resolve the caller identity that scopes every todo operation.

    Behavior:
    - If settings.enable_basic_auth is True: validates credentials against
      BASIC_AUTH_USERNAME/BASIC_AUTH_PASSWORD and returns the username as identity.
      Missing or invalid credentials raise 401 with WWW-Authenticate: Basic.
    - Otherwise: identity comes from the X-User-Id header, or 'anonymous'.

    Usage:
        @router.get("/")
        def handler(user: Identity = Depends(get_current_user)) ...
    """
    settings = get_settings()

    if not settings.enable_basic_auth:
        user_id = (x_user_id or "").strip()
        return Identity(id=user_id or ANONYMOUS_USER_ID)

    if creds is None or not creds.username or creds.password is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    if settings.basic_auth_username is None or settings.basic_auth_password is None:
        # Auth enabled but no accepted credentials configured
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Server authentication not configured",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not (
        creds.username == settings.basic_auth_username
        and creds.password == settings.basic_auth_password
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return Identity(id=creds.username)
