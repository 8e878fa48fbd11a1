# adapters/documents/json_store.py
# Petits documents JSON (settings, users, roles) : lecture/écriture du document entier,
# un verrou par document, écriture atomique (.part + os.replace).
from __future__ import annotations
import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator
from uuid import uuid4

from app.core.logging import get_logger

log = get_logger(__name__)


class DocumentError(Exception): ...


class JsonDocumentStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def path(self, name: str) -> Path:
        return self.root / f"{name}.json"

    @contextmanager
    def locked(self, name: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(name, threading.RLock())
        with lock:
            yield

    def read(self, name: str, default: Callable[[], Any]) -> Any:
        """Document absent -> default(). JSON invalide ou UTF-8 illisible -> DocumentError."""
        p = self.path(name)
        with self.locked(name):
            if not p.exists():
                return default()
            try:
                with p.open("r", encoding="utf-8") as f:
                    return json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise DocumentError(f"{p.name}: {e}") from e

    def write(self, name: str, doc: Any) -> None:
        p = self.path(name)
        tmp = p.with_name(f".{p.name}.{uuid4().hex[:8]}.part")
        with self.locked(name):
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False, indent=2)
            os.replace(tmp, p)

    def update(self, name: str, fn: Callable[[Any], Any], default: Callable[[], Any]) -> Any:
        """Lecture-modification-écriture sous le même verrou ; renvoie le document écrit."""
        with self.locked(name):
            doc = fn(self.read(name, default))
            self.write(name, doc)
            return doc
