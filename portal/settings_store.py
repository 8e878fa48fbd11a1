# portal/settings_store.py
from __future__ import annotations
from pydantic import ValidationError

from adapters.documents.json_store import DocumentError, JsonDocumentStore
from app.core.logging import get_logger
from .models import PortalSettings

logger = get_logger(__name__)

SETTINGS_DOC = "settings"


class SettingsStore:
    """Relu à chaque requête (pas de cache), écrit en entier à chaque mise à jour."""

    def __init__(self, documents: JsonDocumentStore) -> None:
        self.documents = documents

    def load(self) -> PortalSettings:
        try:
            raw = self.documents.read(SETTINGS_DOC, default=dict)
            return PortalSettings.model_validate(raw if isinstance(raw, dict) else {})
        except (DocumentError, ValidationError) as exc:
            logger.warning("settings document unreadable, using defaults: %s", exc)
            return PortalSettings()

    def save(self, settings: PortalSettings) -> PortalSettings:
        self.documents.write(SETTINGS_DOC, settings.dump())
        logger.info("settings saved", extra={"basePath": settings.base_path})
        return settings
