"""FastAPI dependencies for the two auth planes (user sessions, admin secret)."""
from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from nexus.db.models import User
from nexus.services import Services


security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw session token from `Authorization: Bearer <token>`, if any."""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
) -> User:
    """Get current authenticated user from the session token."""
    return await services.auth.require_user(token)


def require_admin(
    x_admin_password: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> None:
    """Reject the request unless the admin secret header matches."""
    services.admin.authorize(x_admin_password)
