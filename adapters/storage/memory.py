# adapters/storage/memory.py
# FileStore en mémoire : suffisant pour les tests du nommage, des collisions et du provisioning.
from __future__ import annotations
import posixpath
import threading
from typing import Dict, Iterator, List, Set, Tuple

from .base import FileStore, StoreEntry


def _norm(path: str) -> str:
    return posixpath.normpath("/" + path.lstrip("/"))


class InMemoryFileStore(FileStore):
    """Arborescence posix en mémoire ; les dossiers listés dans `unreadable` refusent la lecture."""

    def __init__(self) -> None:
        self._dirs: Set[str] = {"/"}
        self._files: Dict[str, bytes] = {}
        self.unreadable: Set[str] = set()
        self._lock = threading.Lock()

    # ----------------- helpers -----------------
    def _require_parent(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if parent not in self._dirs:
            raise FileNotFoundError(parent)

    def _taken(self, path: str) -> bool:
        return path in self._dirs or path in self._files

    # ----------------- contrat -----------------
    def exists(self, path: str) -> bool:
        return self._taken(_norm(path))

    def is_dir(self, path: str) -> bool:
        return _norm(path) in self._dirs

    def is_file(self, path: str) -> bool:
        return _norm(path) in self._files

    def makedirs(self, path: str) -> None:
        p = _norm(path)
        with self._lock:
            current = "/"
            for part in [x for x in p.split("/") if x]:
                current = posixpath.join(current, part)
                if current in self._files:
                    raise NotADirectoryError(current)
                self._dirs.add(current)

    def mkdir_exclusive(self, path: str) -> None:
        p = _norm(path)
        with self._lock:
            if self._taken(p):
                raise FileExistsError(p)
            self._require_parent(p)
            self._dirs.add(p)

    def create_exclusive(self, path: str, data: bytes) -> None:
        p = _norm(path)
        with self._lock:
            if self._taken(p):
                raise FileExistsError(p)
            self._require_parent(p)
            self._files[p] = bytes(data)

    def write_bytes(self, path: str, data: bytes) -> None:
        p = _norm(path)
        with self._lock:
            if p in self._dirs:
                raise IsADirectoryError(p)
            self._require_parent(p)
            self._files[p] = bytes(data)

    def read_bytes(self, path: str) -> bytes:
        p = _norm(path)
        if p not in self._files:
            raise FileNotFoundError(p)
        return self._files[p]

    def iter_bytes(self, path: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        data = self.read_bytes(path)
        for i in range(0, len(data), chunk_size):
            yield data[i:i + chunk_size]

    def remove_tree(self, path: str) -> None:
        p = _norm(path)
        with self._lock:
            if p not in self._dirs:
                raise FileNotFoundError(p)
            prefix = p.rstrip("/") + "/"
            self._dirs = {d for d in self._dirs if d != p and not d.startswith(prefix)}
            self._files = {f: b for f, b in self._files.items() if not f.startswith(prefix)}

    def list_dir(self, path: str) -> List[StoreEntry]:
        p = _norm(path)
        if p not in self._dirs:
            raise FileNotFoundError(p)
        if p in self.unreadable:
            raise PermissionError(p)
        out = [StoreEntry(posixpath.basename(d), True) for d in self._dirs if d != p and posixpath.dirname(d) == p]
        out += [StoreEntry(posixpath.basename(f), False) for f in self._files if posixpath.dirname(f) == p]
        return out

    def resolve(self, path: str) -> str:
        return _norm(path)  # pas de liens symboliques en mémoire

    def can_read(self, path: str) -> bool:
        return _norm(path) not in self.unreadable

    def walk_files(self, path: str) -> Iterator[Tuple[str, str]]:
        p = _norm(path)
        prefix = p.rstrip("/") + "/"
        for f in sorted(self._files):
            if f.startswith(prefix):
                yield f[len(prefix):], f
