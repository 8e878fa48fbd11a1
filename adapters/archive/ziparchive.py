# adapters/archive/ziparchive.py
# archive : ouverture/validation d'un zip, extraction dans un FileStore (écrase en cas de conflit),
# compression d'un dossier ou d'un fichier pour le téléchargement.
from __future__ import annotations
import io
import os
import posixpath
import tempfile
import zipfile
from typing import IO, Iterable, Iterator, Tuple

from adapters.storage.base import FileStore, StorageError, UnsafeEntry


class ArchiveError(StorageError): ...


def open_archive(data: bytes) -> zipfile.ZipFile:
    """Valide le payload (répertoire central lisible, noms d'entrées sûrs) avant toute écriture."""
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ArchiveError(str(e)) from e
    try:
        for name in archive.namelist():
            _entry_parts(name)
    except UnsafeEntry:
        archive.close()
        raise
    return archive


def _entry_parts(name: str) -> list[str]:
    # refuse les entrées absolues ou qui remontent hors de la destination (zip slip)
    clean = name.replace("\\", "/")
    if clean.startswith("/") or (len(clean) > 1 and clean[1] == ":"):
        raise UnsafeEntry(name)
    parts = [p for p in clean.split("/") if p not in ("", ".")]
    if ".." in parts:
        raise UnsafeEntry(name)
    return parts


def extract_archive(store: FileStore, dest: str, archive: zipfile.ZipFile) -> int:
    """Extrait toutes les entrées sous `dest` ; renvoie le nombre de fichiers écrits."""
    written = 0
    for info in archive.infolist():
        parts = _entry_parts(info.filename)
        if not parts:
            continue
        target = os.path.join(dest, *parts)
        if info.is_dir():
            store.makedirs(target)
            continue
        try:
            payload = archive.read(info)
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"{info.filename}: {e}") from e
        store.makedirs(os.path.dirname(target))
        store.write_bytes(target, payload)
        written += 1
    return written


SPOOL_MAX_MEMORY = 8 * 1024 * 1024  # au-delà, l'archive bascule sur un fichier temporaire


def _add_member(zf: zipfile.ZipFile, store: FileStore, arcname: str, path: str, chunk_size: int) -> None:
    with zf.open(arcname, "w", force_zip64=True) as dst:
        for chunk in store.iter_bytes(path, chunk_size):
            dst.write(chunk)


def _iter_spool(spool: IO[bytes], chunk_size: int) -> Iterator[bytes]:
    try:
        spool.seek(0)
        for chunk in iter(lambda: spool.read(chunk_size), b""):
            yield chunk
    finally:
        spool.close()


def _build_zip(store: FileStore, members: Iterable[Tuple[str, str]], chunk_size: int) -> Iterator[bytes]:
    """Construit l'archive dans un spool (mémoire puis disque) et la restitue par morceaux."""
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)
    try:
        with zipfile.ZipFile(spool, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for arcname, path in members:
                _add_member(zf, store, arcname, path, chunk_size)
    except BaseException:
        spool.close()
        raise
    return _iter_spool(spool, chunk_size)


def zip_directory(store: FileStore, src: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    """Contenu récursif de `src`, entrées relatives à `src`."""
    return _build_zip(store, store.walk_files(src), chunk_size)


def zip_file(store: FileStore, path: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    arcname = posixpath.basename(path.replace(os.sep, "/"))
    return _build_zip(store, [(arcname, path)], chunk_size)
