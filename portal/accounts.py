# portal/accounts.py
# Utilisateurs / rôles (users.json, roles.json) + catalogue statique des permissions.
from __future__ import annotations
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from adapters.documents.json_store import JsonDocumentStore
from app.core.logging import get_logger
from app.core.security import get_password_hash, verify_password
from .errors import Conflict, InvalidRequest, NotFound

logger = get_logger(__name__)

USERS_DOC = "users"
ROLES_DOC = "roles"


class Permission(BaseModel):
    key: str
    label: str
    group: str

PERMISSIONS: List[Permission] = [
    Permission(key="admin.read", label="Admin - Read", group="Admin"),
    Permission(key="admin.write", label="Admin - Write", group="Admin"),
    Permission(key="projects.read", label="Projects - Read", group="Projects"),
    Permission(key="projects.write", label="Projects - Write", group="Projects"),
    Permission(key="files.read", label="Files - Read", group="Files"),
    Permission(key="files.write", label="Files - Write", group="Files"),
]

def group_permissions() -> Dict[str, List[Permission]]:
    groups: Dict[str, List[Permission]] = {}
    for perm in PERMISSIONS:
        groups.setdefault(perm.group, []).append(perm)
    return groups


class Role(BaseModel):
    id: str
    name: str
    defaultPermissions: List[str] = Field(default_factory=list)

class User(BaseModel):
    id: str
    name: str
    email: str
    passwordHash: str
    roleId: str
    permissions: List[str] = Field(default_factory=list)

    def public(self) -> Dict:
        return self.model_dump(exclude={"passwordHash"})


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


class RoleRepository:
    def __init__(self, documents: JsonDocumentStore) -> None:
        self.documents = documents

    def list(self) -> List[Role]:
        return [Role.model_validate(r) for r in self.documents.read(ROLES_DOC, default=list)]

    def get(self, role_id: str) -> Optional[Role]:
        return next((r for r in self.list() if r.id == role_id), None)

    def _save(self, roles: List[Role]) -> List[Role]:
        self.documents.write(ROLES_DOC, [r.model_dump() for r in roles])
        return roles

    def create(self, name: Optional[str], default_permissions: Optional[List[str]] = None) -> List[Role]:
        if not name:
            raise InvalidRequest("Missing role name", reason="missing_fields")
        with self.documents.locked(ROLES_DOC):
            roles = self.list()
            roles.append(Role(id=_new_id("r"), name=name, defaultPermissions=default_permissions or []))
            logger.info("role created", extra={"role": name})
            return self._save(roles)

    def update(self, role_id: Optional[str], name: Optional[str] = None,
               default_permissions: Optional[List[str]] = None) -> List[Role]:
        if not role_id:
            raise InvalidRequest("Missing role id", reason="missing_fields")
        with self.documents.locked(ROLES_DOC):
            roles = self.list()
            role = next((r for r in roles if r.id == role_id), None)
            if role is None:
                raise NotFound("Role not found")
            if name:
                role.name = name
            if default_permissions is not None:
                role.defaultPermissions = default_permissions
            return self._save(roles)

    def delete(self, role_id: Optional[str]) -> List[Role]:
        if not role_id:
            raise InvalidRequest("Missing role id", reason="missing_fields")
        with self.documents.locked(ROLES_DOC):
            return self._save([r for r in self.list() if r.id != role_id])


class UserRepository:
    def __init__(self, documents: JsonDocumentStore, roles: RoleRepository, *, bcrypt_rounds: int = 12) -> None:
        self.documents = documents
        self.roles = roles
        self.bcrypt_rounds = bcrypt_rounds

    def list(self) -> List[User]:
        return [User.model_validate(u) for u in self.documents.read(USERS_DOC, default=list)]

    def get(self, user_id: str) -> Optional[User]:
        return next((u for u in self.list() if u.id == user_id), None)

    def find_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.list() if u.email.lower() == email), None)

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        if not email or not password:
            return None
        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.passwordHash):
            return None
        return user

    def _save(self, users: List[User]) -> List[User]:
        self.documents.write(USERS_DOC, [u.model_dump() for u in users])
        return users

    def create(self, *, name: Optional[str], email: Optional[str], password: Optional[str],
               role_id: Optional[str]) -> List[User]:
        if not name or not email or not password or not role_id:
            raise InvalidRequest("Missing name, email, password or roleId", reason="missing_fields")
        with self.documents.locked(USERS_DOC):
            users = self.list()
            if any(u.email.lower() == email.lower() for u in users):
                raise Conflict("User with this email already exists")
            role = self.roles.get(role_id)
            if role is None:
                raise InvalidRequest("Invalid role", reason="invalid_role")
            users.append(User(
                id=_new_id("u"),
                name=name,
                email=email,
                passwordHash=get_password_hash(password, self.bcrypt_rounds),
                roleId=role_id,
                permissions=list(role.defaultPermissions),  # copie des permissions du rôle
            ))
            logger.info("user created", extra={"email": email, "role": role_id})
            return self._save(users)

    def update(self, user_id: Optional[str], *, name: Optional[str] = None, email: Optional[str] = None,
               role_id: Optional[str] = None, password: Optional[str] = None,
               permissions: Optional[List[str]] = None) -> List[User]:
        if not user_id:
            raise InvalidRequest("Missing user id", reason="missing_fields")
        with self.documents.locked(USERS_DOC):
            users = self.list()
            user = next((u for u in users if u.id == user_id), None)
            if user is None:
                raise NotFound("User not found")
            if email and any(u.email.lower() == email.lower() and u.id != user_id for u in users):
                raise Conflict("Another user already has this email")
            if role_id and self.roles.get(role_id) is None:
                raise InvalidRequest("Invalid role", reason="invalid_role")

            if name:
                user.name = name
            if email:
                user.email = email
            if role_id:
                user.roleId = role_id
            if permissions is not None:
                user.permissions = permissions
            if password:
                user.passwordHash = get_password_hash(password, self.bcrypt_rounds)
            return self._save(users)

    def delete(self, user_id: Optional[str]) -> List[User]:
        if not user_id:
            raise InvalidRequest("Missing user id", reason="missing_fields")
        with self.documents.locked(USERS_DOC):
            users = self.list()
            if not any(u.id == user_id for u in users):
                raise NotFound("User not found")
            return self._save([u for u in users if u.id != user_id])
