# adapters/storage/local.py
from __future__ import annotations

import contextlib
import os
import shutil
from uuid import uuid4
from typing import Iterator, List, Tuple

from .base import FileStore, StoreEntry

from app.core.logging import get_logger

log = get_logger(__name__)


def _part_path(path: str) -> str:
    # fichier temporaire voisin : même volume => os.link / os.replace atomiques
    directory, name = os.path.split(path)
    return os.path.join(directory, f".{name}.{uuid4().hex[:8]}.part")


def _discard(path: str) -> None:
    # nettoyage d'un .part (ou d'une cible partielle) après échec
    with contextlib.suppress(FileNotFoundError):
        os.unlink(path)


class LocalFileStore(FileStore):
    """
    Implémentation disque locale du contrat FileStore:
    - écriture via un .part voisin puis publication atomique;
    - create_exclusive publie avec os.link (échoue si la cible existe);
    - mkdir_exclusive s'appuie sur os.mkdir.
    """

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def makedirs(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def mkdir_exclusive(self, path: str) -> None:
        os.mkdir(path)

    def create_exclusive(self, path: str, data: bytes) -> None:
        tmp = _part_path(path)
        try:
            with open(tmp, "xb") as out:
                out.write(data)
            try:
                os.link(tmp, path)
            except FileExistsError:
                raise
            except OSError:
                # lien physique non supporté (partages SMB, FAT…) : création exclusive directe
                log.debug("hard link unsupported, falling back to O_EXCL write", extra={"path": path})
                self._write_exclusive(path, data)
        finally:
            _discard(tmp)

    @staticmethod
    def _write_exclusive(path: str, data: bytes) -> None:
        out = open(path, "xb")  # FileExistsError : rien n'a été créé
        try:
            with out:
                out.write(data)
        except BaseException:
            _discard(path)  # pas de fichier tronqué sous le nom final
            raise

    def write_bytes(self, path: str, data: bytes) -> None:
        tmp = _part_path(path)
        try:
            with open(tmp, "wb") as out:
                out.write(data)
            os.replace(tmp, path)  # move atomique si même volume
        except BaseException:
            _discard(tmp)
            raise

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def iter_bytes(self, path: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                yield chunk

    def remove_tree(self, path: str) -> None:
        shutil.rmtree(path)

    def list_dir(self, path: str) -> List[StoreEntry]:
        with os.scandir(path) as it:
            return [StoreEntry(name=e.name, is_dir=e.is_dir()) for e in it]

    def resolve(self, path: str) -> str:
        return os.path.realpath(path)

    def can_read(self, path: str) -> bool:
        return os.access(path, os.R_OK)

    def walk_files(self, path: str) -> Iterator[Tuple[str, str]]:
        for root, dirs, files in os.walk(path):
            dirs.sort()
            for name in sorted(files):
                full = os.path.join(root, name)
                yield os.path.relpath(full, path).replace(os.sep, "/"), full
