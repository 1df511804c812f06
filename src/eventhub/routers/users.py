"""User directory endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from eventhub.auth.dependencies import get_current_user, require_roles
from eventhub.auth.models import AuthUser
from eventhub.models.database import get_db
from eventhub.models.user import Role
from eventhub.services.user_service import UserService, build_user_summary

router = APIRouter(prefix="/users", tags=["Users"])


class RoleUpdateRequest(BaseModel):
    role: Role


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


@router.get("")
async def list_users(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_roles(Role.ADMIN)),
):
    return {"users": UserService(db).list_users()}


@router.get("/me")
async def get_me(
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    user = UserService(db).get_user(current_user.id)
    return build_user_summary(db, user)


@router.patch("/me")
async def update_me(
    request: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    return UserService(db).update_me(current_user, request.name)


@router.post("/me/change-password")
async def change_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    UserService(db).change_password(
        current_user, request.old_password, request.new_password
    )
    return {"message": "Password changed"}


@router.patch("/{user_id}/role")
async def update_role(
    user_id: int,
    request: RoleUpdateRequest,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_roles(Role.ADMIN)),
):
    return UserService(db).update_role(user_id, request.role)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    UserService(db).delete_user(user_id, current_user)
    return {"message": "User deleted"}
