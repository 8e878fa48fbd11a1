# routes/settings.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.core.auth import require_permission
from app.core.logging import get_logger
from app.core.resources import get_role_repository, get_settings_store
from portal.accounts import PERMISSIONS, RoleRepository, group_permissions
from portal.models import Identity, PortalSettings
from portal.settings_store import SettingsStore

router = APIRouter(prefix="/settings", tags=["settings"])
logger = get_logger(__name__)


class RoleBody(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    defaultPermissions: Optional[List[str]] = None


# ----------------- settings portail (basePath, requiredFolders, dateFormat) -----------------

@router.get("")
@router.get("/projects")
def get_portal_settings(
    store: SettingsStore = Depends(get_settings_store),
    _: Optional[Identity] = Depends(require_permission("projects.read")),
):
    return store.load().dump()


@router.post("/projects")
def save_portal_settings(
    body: PortalSettings,
    store: SettingsStore = Depends(get_settings_store),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return store.save(body).dump()


# ----------------- rôles -----------------

def _roles(roles) -> dict:
    return {"roles": [r.model_dump() for r in roles]}

@router.get("/roles")
def list_roles(
    repo: RoleRepository = Depends(get_role_repository),
    _: Optional[Identity] = Depends(require_permission("admin.read")),
):
    return _roles(repo.list())

@router.post("/roles")
def create_role(
    body: RoleBody,
    repo: RoleRepository = Depends(get_role_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _roles(repo.create(body.name, body.defaultPermissions))

@router.patch("/roles")
def update_role(
    body: RoleBody,
    repo: RoleRepository = Depends(get_role_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _roles(repo.update(body.id, name=body.name, default_permissions=body.defaultPermissions))

@router.delete("/roles")
def delete_role(
    id: Optional[str] = Query(None),
    repo: RoleRepository = Depends(get_role_repository),
    _: Optional[Identity] = Depends(require_permission("admin.write")),
):
    return _roles(repo.delete(id))


# ----------------- permissions (catalogue statique) -----------------

@router.get("/permissions")
def list_permissions():
    return {
        "permissions": [p.model_dump() for p in PERMISSIONS],
        "groups": {g: [p.model_dump() for p in perms] for g, perms in group_permissions().items()},
    }
