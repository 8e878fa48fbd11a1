# portal/uploads.py
from __future__ import annotations
import os
from datetime import datetime
from typing import Callable, Literal, Optional
from urllib.parse import unquote

from adapters.archive.ziparchive import ArchiveError, extract_archive, open_archive
from adapters.storage.base import FileStore, UnsafeEntry
from app.core.logging import get_logger
from .collisions import claim_unique_path
from .errors import AccessDenied, ConfigurationError, InvalidRequest, StorageFailure, UnknownKind
from .models import Identity, UploadKind, UploadResult
from .naming import compute_base_name
from .provisioning import is_contained
from .settings_store import SettingsStore

logger = get_logger(__name__)

ProgrammationPolicy = Literal["suffix", "overwrite"]


def parse_kind(kind: str) -> UploadKind:
    try:
        return UploadKind(kind)
    except ValueError:
        raise UnknownKind(f"Unknown upload kind: {kind}") from None


def decode_client(raw: str) -> str:
    client = unquote(raw).strip()
    if not client or "/" in client or "\\" in client or client in (".", ".."):
        raise InvalidRequest(f"Invalid client: {raw}", reason="invalid_client")
    return client


class UploadDispatcher:
    """Service métier : route un upload selon son kind vers le bon dossier, nom et mode d'écriture."""

    def __init__(
        self,
        store: FileStore,
        settings: SettingsStore,
        *,
        policy: ProgrammationPolicy = "suffix",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.settings = settings
        self.policy = policy
        self.clock = clock

    def handle_upload(
        self,
        *,
        client: Optional[str],
        kind: Optional[str],
        uploader: Optional[Identity],
        filename: Optional[str],
        data: Optional[bytes],
    ) -> UploadResult:
        cfg = self.settings.load()
        if not cfg.base_path:
            raise ConfigurationError("No basePath configured")
        if data is None or not client or not kind:
            raise InvalidRequest("Missing file, client, or kind", reason="missing_fields")
        upload_kind = parse_kind(kind)
        client_name = decode_client(client)

        display_name = uploader.name if uploader else None
        base_name = compute_base_name(
            client_name, upload_kind, self.clock(), cfg.date_format, display_name, filename
        )
        logger.info(
            "upload:start",
            extra={"client": client_name, "kind": upload_kind.value, "upload_name": base_name},
        )

        archive = None
        if upload_kind.extracts_archive:
            try:
                archive = open_archive(data)
            except (UnsafeEntry, ArchiveError) as e:
                raise InvalidRequest(f"Invalid archive: {e}", reason="invalid_archive") from e

        client_dir = os.path.join(cfg.base_path, client_name)
        target_dir = os.path.join(client_dir, upload_kind.subfolder)
        if not is_contained(self.store, cfg.base_path, target_dir):
            logger.warning("upload target escapes basePath: %s", target_dir)
            raise AccessDenied("Forbidden base path")
        try:
            self.store.makedirs(client_dir)
            self.store.makedirs(target_dir)
            if archive is None:
                saved = claim_unique_path(
                    self.store, target_dir, base_name,
                    lambda p: self.store.create_exclusive(p, data),
                )
                result = UploadResult(savedAs=saved, kind=upload_kind.value)
            else:
                with archive:
                    saved = self._claim_directory(target_dir, base_name)
                    count = extract_archive(self.store, saved, archive)
                logger.info("upload:extracted", extra={"path": saved, "files": count})
                result = UploadResult(savedAs=saved, kind=upload_kind.value, name=os.path.basename(saved))
        except (UnsafeEntry, ArchiveError) as e:
            raise InvalidRequest(f"Invalid archive entry: {e}", reason="invalid_archive") from e
        except OSError as e:
            logger.error("upload failed for %s/%s: %s", client_name, upload_kind.value, e)
            raise StorageFailure(str(e)) from e

        logger.info("upload:end", extra={"path": result.savedAs, "kind": result.kind})
        return result

    def _claim_directory(self, parent: str, base_name: str) -> str:
        if self.policy == "overwrite":
            path = os.path.join(parent, base_name)
            if self.store.is_dir(path):
                logger.warning("overwriting existing directory %s", path)
                self.store.remove_tree(path)
                self.store.makedirs(path)
                return path
            if self.store.exists(path):
                # un fichier porte ce nom : on ne le supprime pas, on prend le nom libre suivant
                logger.warning("file occupies %s, claiming next free directory name", path)
        return claim_unique_path(self.store, parent, base_name, self.store.mkdir_exclusive, is_dir=True)
