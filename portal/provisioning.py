# portal/provisioning.py
from __future__ import annotations
import os
from typing import Sequence

from adapters.storage.base import FileStore
from app.core.logging import get_logger
from .errors import ProvisioningError

logger = get_logger(__name__)


def _relative(base_path: str, path: str) -> str | None:
    base = os.path.normpath(base_path)
    target = os.path.normpath(path)
    try:
        if os.path.commonpath([base, target]) != base:
            return None
    except ValueError:  # chemins mixtes absolu/relatif
        return None
    return os.path.relpath(target, base)


def is_within(base_path: str, path: str) -> bool:
    """`path` est `base_path` ou se trouve dessous (comparaison par segments, pas par préfixe)."""
    return _relative(base_path, path) is not None


def is_contained(store: FileStore, base_path: str, path: str) -> bool:
    """is_within sur les chemins tels quels puis sur leurs formes canoniques :
    un lien symbolique sous la base ne doit pas donner accès à l'extérieur."""
    return is_within(base_path, path) and is_within(store.resolve(base_path), store.resolve(path))


def is_client_root(base_path: str, view_path: str) -> bool:
    """Exactement un segment sous la base : 'ACME' oui, 'ACME/schemas' non, la base elle-même non."""
    rel = _relative(base_path, view_path)
    if rel is None or rel == os.curdir:
        return False
    return os.sep not in rel


def ensure_required_folders(store: FileStore, view_path: str, required_folders: Sequence[str]) -> None:
    try:
        store.makedirs(view_path)
        for folder in required_folders:
            store.makedirs(os.path.join(view_path, folder))
    except OSError as exc:
        logger.error("could not prepare folder structure for %s: %s", view_path, exc)
        raise ProvisioningError("Could not prepare folder structure") from exc
