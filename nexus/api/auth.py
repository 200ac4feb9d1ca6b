"""Auth API - register, login, profile."""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from nexus.auth.deps import get_bearer_token, get_services
from nexus.db.models import PublicUser
from nexus.errors import Unauthorized
from nexus.services import Services


router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Registration payload. Blank fields are rejected by the service."""
    email: str = ""
    password: str = ""
    username: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UpdateProfileRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    """Token response after successful register/login."""
    token: str
    user: PublicUser


class UserResponse(BaseModel):
    user: PublicUser


@router.post("/register", response_model=TokenResponse)
async def register(body: RegisterRequest, services: Services = Depends(get_services)):
    """Create an account with the starting credit grant and log it in."""
    result = await services.auth.register(body.email, body.password, body.username)
    return TokenResponse(token=result.token, user=result.user)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, services: Services = Depends(get_services)):
    result = await services.auth.login(body.email, body.password)
    return TokenResponse(token=result.token, user=result.user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
):
    """Get the logged-in user's profile."""
    user = await services.auth.get_current_user(token)
    if user is None:
        raise Unauthorized()
    return UserResponse(user=user)


@router.post("/update", response_model=UserResponse)
async def update_profile(
    body: UpdateProfileRequest,
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
):
    """Change username and/or password; omitted fields are left as they are."""
    user = await services.auth.update_profile(token, username=body.username, password=body.password)
    return UserResponse(user=user)


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
):
    """Revoke the presented session token."""
    await services.auth.logout(token)
    return {"status": "ok"}
