# Ressources singletons (branchement centralisé des adapters) :
# les routes les consomment via Depends, les tests les remplacent via app.dependency_overrides.

from functools import lru_cache

from adapters.documents.json_store import JsonDocumentStore
from adapters.storage.base import FileStore
from adapters.storage.local import LocalFileStore
from app.core.config import AuthCfg, get_settings
from portal.accounts import RoleRepository, UserRepository
from portal.browser import FileBrowser
from portal.settings_store import SettingsStore
from portal.uploads import UploadDispatcher
from portal.version import VersionChecker


@lru_cache
def get_auth_config() -> AuthCfg:
    return get_settings().auth

@lru_cache
def get_file_store() -> FileStore:
    return LocalFileStore()

@lru_cache
def get_documents() -> JsonDocumentStore:
    return JsonDocumentStore(get_settings().data.dir)

@lru_cache
def get_settings_store() -> SettingsStore:
    return SettingsStore(get_documents())

@lru_cache
def get_role_repository() -> RoleRepository:
    return RoleRepository(get_documents())

@lru_cache
def get_user_repository() -> UserRepository:
    return UserRepository(get_documents(), get_role_repository(),
                          bcrypt_rounds=get_settings().auth.bcrypt_rounds)

@lru_cache
def get_browser() -> FileBrowser:
    cfg = get_settings().portal
    return FileBrowser(get_file_store(), get_settings_store(),
                       probe_timeout=cfg.access_probe_timeout_s,
                       chunk_size=cfg.download_chunk_size)

@lru_cache
def get_dispatcher() -> UploadDispatcher:
    return UploadDispatcher(get_file_store(), get_settings_store(),
                            policy=get_settings().portal.programmation_policy)

@lru_cache
def get_version_checker() -> VersionChecker:
    cfg = get_settings().version
    return VersionChecker(cfg.remote_url, timeout=cfg.timeout_s)
