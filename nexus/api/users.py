"""Users API - admin user management and credit top-ups."""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from nexus.auth.deps import get_services, require_admin
from nexus.db.models import PublicUser, User
from nexus.errors import NotFound, ValidationError
from nexus.services import Services


router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(require_admin)])


class UserListResponse(BaseModel):
    users: list[PublicUser]


class UserResponse(BaseModel):
    user: PublicUser


class EditUserRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None


class CreditAdjustRequest(BaseModel):
    """Credit delta; negative values deduct."""
    amount: int = 0


class CreditAdjustResponse(BaseModel):
    status: str = "ok"
    credits: int


@router.get("", response_model=UserListResponse)
async def list_users(services: Services = Depends(get_services)):
    """List every user (password hashes omitted)."""
    users = await services.users.list_users()
    return UserListResponse(users=[u.public() for u in users])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, services: Services = Depends(get_services)):
    user = await services.users.get_user_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return UserResponse(user=user.public())


@router.patch("/{user_id}", response_model=UserResponse)
async def edit_user(
    user_id: str,
    body: EditUserRequest,
    services: Services = Depends(get_services),
):
    """Change a user's username and/or email."""
    if body.email is not None and not body.email.strip():
        raise ValidationError("Email cannot be blank")

    user = await services.users.get_user_by_id(user_id)
    if user is None:
        raise NotFound("User not found")

    if body.email is not None:
        user = await services.users.change_email(user_id, body.email)

    username = (body.username or "").strip()
    if username:
        def _rename(u: User) -> None:
            u.username = username

        user = await services.users.modify_user(user_id, _rename)

    return UserResponse(user=user.public())


@router.delete("/{user_id}")
async def delete_user(user_id: str, services: Services = Depends(get_services)):
    """Delete a user and free their email. Unknown ids are a no-op."""
    await services.users.delete_user(user_id)
    return {"status": "ok"}


@router.post("/{user_id}/credits", response_model=CreditAdjustResponse)
async def adjust_credits(
    user_id: str,
    body: CreditAdjustRequest,
    services: Services = Depends(get_services),
):
    """Add (or subtract) credits for a user."""
    credits = await services.ledger.adjust(user_id, body.amount)
    return CreditAdjustResponse(credits=credits)
