# app/core/auth.py
# Dépendances FastAPI : identité (Bearer JWT) + contrôle des permissions.
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from starlette.concurrency import run_in_threadpool

from app.core.config import AuthCfg
from app.core.logging import bind_user
from app.core.resources import get_auth_config, get_user_repository
from app.core.security import decode_token
from portal.accounts import UserRepository
from portal.errors import AccessDenied, Unauthorized
from portal.models import Identity

_bearer = HTTPBearer(auto_error=False)


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    cfg: AuthCfg = Depends(get_auth_config),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[Identity]:
    """Pas de session -> None ; jeton invalide ou utilisateur supprimé -> 401."""
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials, cfg)
    user = await run_in_threadpool(users.get, payload["sub"])
    if user is None:
        raise Unauthorized("Unknown user")
    bind_user(user.id)
    return Identity(id=user.id, name=user.name, email=user.email,
                    role_id=user.roleId, permissions=user.permissions)


def require_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise Unauthorized("Not authenticated")
    return identity


def require_permission(key: str):
    """No-op tant que auth.enforce_permissions est désactivé."""
    def dependency(
        identity: Optional[Identity] = Depends(get_optional_identity),
        cfg: AuthCfg = Depends(get_auth_config),
    ) -> Optional[Identity]:
        if not cfg.enforce_permissions:
            return identity
        if identity is None:
            raise Unauthorized("Not authenticated")
        if key not in identity.permissions:
            raise AccessDenied(f"Missing permission: {key}", reason="forbidden")
        return identity
    return dependency
