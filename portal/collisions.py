# portal/collisions.py
# Collision → disambiguateur inséré dans le segment date : "07032024 JD" -> "07032024_1JD", _2, …
# Nom hors convention → suffixe générique "nom (1)", pour garantir la terminaison.
from __future__ import annotations
import itertools
import os
import re
from typing import Callable, Iterator

from adapters.storage.base import FileStore

_STAMPED = re.compile(r"(?P<stamp>\d{8}) (?P<initials>[A-Z]+)(?P<ext>\.[^.\s]+)?$")


def disambiguate(base_name: str, n: int, *, is_dir: bool = False) -> str:
    m = _STAMPED.search(base_name)
    if m:
        return f"{base_name[:m.start()]}{m['stamp']}_{n}{m['initials']}{m['ext'] or ''}"
    if is_dir:
        return f"{base_name} ({n})"
    stem, ext = os.path.splitext(base_name)
    return f"{stem} ({n}){ext}"


def candidate_names(base_name: str, *, is_dir: bool = False) -> Iterator[str]:
    yield base_name
    for n in itertools.count(1):
        yield disambiguate(base_name, n, is_dir=is_dir)


def resolve_unique_path(store: FileStore, directory: str, desired_base_name: str, *, is_dir: bool = False) -> str:
    """Premier candidat libre au moment de l'appel (vérification seule, sans réservation)."""
    for name in candidate_names(desired_base_name, is_dir=is_dir):
        path = os.path.join(directory, name)
        if not store.exists(path):
            return path
    raise AssertionError("unreachable")


def claim_unique_path(
    store: FileStore,
    directory: str,
    desired_base_name: str,
    claim: Callable[[str], None],
    *,
    is_dir: bool = False,
) -> str:
    """
    Parcourt les mêmes candidats mais réserve la cible via `claim` (création exclusive) :
    un candidat pris entre-temps lève FileExistsError et on passe au suivant.
    """
    for name in candidate_names(desired_base_name, is_dir=is_dir):
        path = os.path.join(directory, name)
        if store.exists(path):
            continue
        try:
            claim(path)
        except FileExistsError:
            continue
        return path
    raise AssertionError("unreachable")
