# adapters/storage/base.py
# storage : contrat indépendant du support (FS local, mémoire pour les tests…)
# Les primitives *_exclusive lèvent FileExistsError si la cible existe déjà :
# c'est la seule garantie d'unicité sur laquelle s'appuie la résolution de collisions.
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Tuple


class StorageError(Exception): ...
class UnsafeEntry(StorageError): ...

@dataclass(frozen=True)
class StoreEntry:
    name: str
    is_dir: bool

class FileStore(ABC):
    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def is_dir(self, path: str) -> bool: ...

    @abstractmethod
    def is_file(self, path: str) -> bool: ...

    @abstractmethod
    def makedirs(self, path: str) -> None:
        """Création récursive, sans erreur si le dossier existe."""

    @abstractmethod
    def mkdir_exclusive(self, path: str) -> None: ...

    @abstractmethod
    def create_exclusive(self, path: str, data: bytes) -> None: ...

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        """Écrit (ou remplace) un fichier."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes: ...

    @abstractmethod
    def iter_bytes(self, path: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]: ...

    @abstractmethod
    def remove_tree(self, path: str) -> None: ...

    @abstractmethod
    def list_dir(self, path: str) -> List[StoreEntry]: ...

    @abstractmethod
    def resolve(self, path: str) -> str:
        """Chemin canonique (liens symboliques suivis) pour les contrôles d'appartenance."""

    @abstractmethod
    def can_read(self, path: str) -> bool: ...

    @abstractmethod
    def walk_files(self, path: str) -> Iterator[Tuple[str, str]]:
        """Renvoie (chemin relatif posix, chemin absolu) pour chaque fichier sous `path`."""
