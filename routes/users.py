# routes/users.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.core.auth import require_permission
from app.core.resources import get_user_repository
from portal.accounts import UserRepository
from portal.models import Identity

router = APIRouter(prefix="/users", tags=["users"])


class UserBody(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    roleId: Optional[str] = None
    permissions: Optional[List[str]] = None


def _users(users) -> dict:
    # jamais de passwordHash côté API
    return {"users": [u.public() for u in users]}

@router.get("")
def list_users(
    repo: UserRepository = Depends(get_user_repository),
    _: Optional[Identity] = Depends(require_permission("admin.read")),
):
    return _users(repo.list())

@router.post("")
def create_user(
    body: UserBody,
    repo: UserRepository = Depends(get_user_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _users(repo.create(name=body.name, email=body.email, password=body.password, role_id=body.roleId))

@router.patch("")
def update_user(
    body: UserBody,
    repo: UserRepository = Depends(get_user_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _users(repo.update(body.id, name=body.name, email=body.email, role_id=body.roleId,
                              password=body.password, permissions=body.permissions))

@router.delete("")
def delete_user(
    id: Optional[str] = Query(None),
    repo: UserRepository = Depends(get_user_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _users(repo.delete(id))
