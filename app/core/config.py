# app/core/config.py
# Core → config (YAML + env + cache)
from __future__ import annotations
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Pydantic models (typage fort + auto-doc)
# ---------------------------------------------------------------------------

class AppCfg(BaseModel):
    """Configuration de l'application"""
    name: str = "project-portal"
    env: str = "dev"
    host: str = "127.0.0.1"
    port: int = 8050
    log_level: str = "INFO"
    log_file: Optional[Path] = None # None -> console seule
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("log_file", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        # ${PORTAL_LOG_FILE:} interpolé en chaîne vide
        return v or None

class DataCfg(BaseModel):
    """Emplacement des documents JSON (settings, users, roles)"""
    dir: Path = Path("./data")

class PortalCfg(BaseModel):
    """Comportement des uploads et du navigateur de fichiers"""
    programmation_policy: Literal["suffix", "overwrite"] = "suffix"
    access_probe_timeout_s: float = 2.0
    download_chunk_size: int = 1024 * 1024

class AuthCfg(BaseModel):
    """Sessions JWT et politique d'identité"""
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    token_expire_minutes: int = 60 * 12
    bcrypt_rounds: int = 12
    require_upload_session: bool = False
    enforce_permissions: bool = False

class VersionCfg(BaseModel):
    """Vérification de version distante"""
    remote_url: Optional[str] = None # raw pyproject.toml de la branche publiée
    timeout_s: float = 10.0

class Settings(BaseModel):
    """Configuration générale de l'application"""
    app: AppCfg = AppCfg()
    data: DataCfg = DataCfg()
    portal: PortalCfg = PortalCfg()
    auth: AuthCfg = AuthCfg()
    version: VersionCfg = VersionCfg()


# ---------------------------------------------------------------------------
# YAML loader + interpolation ${VAR:default}
# ---------------------------------------------------------------------------

# Pattern pour l'expansion des variables d'environnement
_env_pattern = re.compile(r"\$\{([A-Z0-9_]+)(?::([^}]*))?\}")

def _interpolate_env(value: Any) -> Any:
    """Interpole les variables d'environnement dans les chaînes de caractères."""
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var, default = match.group(1), match.group(2) or ""
            return os.getenv(var, default)
        return _env_pattern.sub(repl, value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(v) for v in value]
    return value

def _load_yaml(path: Path) -> Dict[str, Any]:
    """Charge un fichier YAML et retourne un dictionnaire."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return raw

# ---------------------------------------------------------------------------
# Public factory (cache)
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Charge .env puis settings.yaml, effectue l'interpolation et valide (renvoie les paramètres de configuration)."""
    load_dotenv(override=True)

    cfg_path = Path(os.getenv("PORTAL_CONFIG", "config/settings.yaml"))
    data = _interpolate_env(_load_yaml(cfg_path))

    try:
        return Settings(**data)
    except ValidationError as exc:
        # Affiche l'erreur proprement dès le boot
        raise RuntimeError(f"Invalid configuration in {cfg_path}:\n{exc}")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
__all__ = [
"Settings",
"get_settings",
]
