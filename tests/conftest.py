# tests/conftest.py
from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from adapters.documents.json_store import JsonDocumentStore
from adapters.storage.local import LocalFileStore
from adapters.storage.memory import InMemoryFileStore
from app.core.config import AuthCfg
from app.core import resources
from portal.accounts import RoleRepository, UserRepository
from portal.browser import FileBrowser
from portal.models import PortalSettings
from portal.settings_store import SettingsStore
from portal.uploads import UploadDispatcher

FIXED_NOW = datetime(2024, 3, 7, 10, 30)
REQUIRED = ["schemas", "programmation", "pictures"]


@pytest.fixture
def documents(tmp_path: Path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path / "data")

@pytest.fixture
def settings_store(documents: JsonDocumentStore) -> SettingsStore:
    return SettingsStore(documents)

@pytest.fixture
def memory_store() -> InMemoryFileStore:
    return InMemoryFileStore()

@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    d = tmp_path / "clients"
    d.mkdir()
    return d

@pytest.fixture
def configured(settings_store: SettingsStore, base_dir: Path) -> PortalSettings:
    return settings_store.save(PortalSettings(
        basePath=str(base_dir), requiredFolders=REQUIRED, dateFormat="DDMMYYYY",
    ))

@pytest.fixture
def auth_cfg() -> AuthCfg:
    return AuthCfg(jwt_secret="test-secret", bcrypt_rounds=4)

@pytest.fixture
def roles(documents: JsonDocumentStore) -> RoleRepository:
    return RoleRepository(documents)

@pytest.fixture
def users(documents: JsonDocumentStore, roles: RoleRepository) -> UserRepository:
    return UserRepository(documents, roles, bcrypt_rounds=4)


@pytest.fixture
async def client(documents, settings_store, roles, users, auth_cfg) -> AsyncGenerator[AsyncClient, None]:
    """Client HTTP sur l'app, adapters branchés sur tmp_path et horloge figée."""
    from app.main import app

    store = LocalFileStore()
    app.dependency_overrides.update({
        resources.get_auth_config: lambda: auth_cfg,
        resources.get_file_store: lambda: store,
        resources.get_documents: lambda: documents,
        resources.get_settings_store: lambda: settings_store,
        resources.get_role_repository: lambda: roles,
        resources.get_user_repository: lambda: users,
        resources.get_browser: lambda: FileBrowser(store, settings_store, probe_timeout=1.0),
        resources.get_dispatcher: lambda: UploadDispatcher(store, settings_store, clock=lambda: FIXED_NOW),
    })
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
