# routes/auth.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import require_identity
from app.core.config import AuthCfg
from app.core.logging import get_logger
from app.core.resources import get_auth_config, get_user_repository
from app.core.security import create_access_token
from portal.accounts import UserRepository
from portal.errors import Unauthorized
from portal.models import Identity

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)


class LoginBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
def login(
    body: LoginBody,
    repo: UserRepository = Depends(get_user_repository),
    cfg: AuthCfg = Depends(get_auth_config),
):
    user = repo.authenticate(body.email, body.password)
    if user is None:
        logger.info("login refused", extra={"email": body.email})
        raise Unauthorized("Invalid email or password")
    token = create_access_token({"sub": user.id, "name": user.name, "role": user.roleId}, cfg)
    return {"access_token": token, "token_type": "bearer", "user": user.public()}


@router.get("/me")
def me(identity: Identity = Depends(require_identity)):
    return identity
