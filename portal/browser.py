# portal/browser.py
from __future__ import annotations
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Iterator, List, Optional

from adapters.archive.ziparchive import zip_directory, zip_file
from adapters.storage.base import FileStore
from app.core.logging import get_logger
from .errors import AccessDenied, ConfigurationError, InvalidRequest, NotFound
from .models import DirectoryEntry
from .provisioning import ensure_required_folders, is_client_root, is_contained
from .settings_store import SettingsStore

logger = get_logger(__name__)

# sonde d'accès partagée : un montage réseau bloqué ne doit pas bloquer le listing
_PROBES = ThreadPoolExecutor(max_workers=8, thread_name_prefix="access-probe")


@dataclass
class Download:
    filename: str
    media_type: str
    chunks: Iterator[bytes]


class FileBrowser:
    def __init__(
        self,
        store: FileStore,
        settings: SettingsStore,
        *,
        probe_timeout: float = 2.0,
        chunk_size: int = 1024 * 1024,
    ) -> None:
        self.store = store
        self.settings = settings
        self.probe_timeout = probe_timeout
        self.chunk_size = chunk_size

    # ----------------- listing -----------------
    def list(self, view: Optional[str] = None) -> List[DirectoryEntry]:
        cfg = self.settings.load()
        if not cfg.base_path:
            return []

        view = view or cfg.base_path
        if not is_contained(self.store, cfg.base_path, view):
            raise AccessDenied("Forbidden base path")

        if (
            os.path.normpath(view) != os.path.normpath(cfg.base_path)
            and is_client_root(cfg.base_path, view)
            and cfg.required_folders
        ):
            ensure_required_folders(self.store, view, cfg.required_folders)

        try:
            entries = self.store.list_dir(view)
        except OSError as exc:
            logger.warning("cannot list %s: %s", view, exc)
            raise AccessDenied("Access denied") from exc

        dirs = [os.path.join(view, e.name) for e in entries if e.is_dir]
        readable = self._probe(dirs)
        result = [
            DirectoryEntry(
                path=os.path.join(view, e.name),
                name=e.name,
                type="directory" if e.is_dir else "file",
                accessible=readable.get(os.path.join(view, e.name), True),
            )
            for e in entries
        ]
        result.sort(key=lambda d: (d.type != "directory", d.name.lower()))
        return result

    def _probe(self, paths: List[str]) -> dict[str, bool]:
        futures = {_PROBES.submit(self.store.can_read, p): p for p in paths}
        done, pending = wait(futures, timeout=self.probe_timeout)
        out = {p: False for p in paths}
        for fut in done:
            p = futures[fut]
            exc = fut.exception()
            out[p] = exc is None and bool(fut.result())
        for fut in pending:
            logger.warning("access probe timed out for %s", futures[fut])
        return out

    # ----------------- téléchargement -----------------
    def download(self, path: Optional[str], as_zip: bool = False) -> Download:
        if not path:
            raise InvalidRequest("Missing path", reason="missing_path")
        cfg = self.settings.load()
        if not cfg.base_path:
            raise ConfigurationError("No basePath configured")
        if not is_contained(self.store, cfg.base_path, path):
            raise AccessDenied("Forbidden base path")
        if not self.store.exists(path):
            raise NotFound("Not found")

        name = os.path.basename(os.path.normpath(path))
        if self.store.is_file(path) and not as_zip:
            return Download(name, "application/octet-stream", self.store.iter_bytes(path, self.chunk_size))
        if self.store.is_dir(path):
            logger.info("zipping directory %s", path)
            return Download(f"{name}.zip", "application/zip", zip_directory(self.store, path, self.chunk_size))
        if self.store.is_file(path):
            return Download(f"{name}.zip", "application/zip", zip_file(self.store, path, self.chunk_size))
        raise InvalidRequest("Unsupported path type", reason="unsupported_path")
