# portal/naming.py
# Convention de nommage des uploads : "{client} {stamp} {initials}[ext]"
from __future__ import annotations
import posixpath
from datetime import datetime
from typing import Optional

from .models import UploadKind

DEFAULT_DATE_FORMAT = "DDMMYYYY"
PLACEHOLDER_INITIALS = "XX"


def get_initials(display_name: Optional[str]) -> str:
    """'Jane Q. Doe' -> 'JQD' ; pas de nom -> 'XX'."""
    words = (display_name or "").split()
    if not words:
        return PLACEHOLDER_INITIALS
    return "".join(w[0] for w in words).upper()


def format_date(now: datetime, date_format: Optional[str] = None) -> str:
    fmt = date_format or DEFAULT_DATE_FORMAT
    # chaque jeton n'est remplacé qu'une fois
    fmt = fmt.replace("YYYY", f"{now.year:04d}", 1)
    fmt = fmt.replace("MM", f"{now.month:02d}", 1)
    return fmt.replace("DD", f"{now.day:02d}", 1)


def file_extension(filename: Optional[str]) -> str:
    # le navigateur peut envoyer un chemin complet : on ne garde que le nom
    name = posixpath.basename((filename or "").replace("\\", "/"))
    return posixpath.splitext(name)[1]


def compute_base_name(
    client: str,
    kind: UploadKind,
    now: datetime,
    date_format: Optional[str],
    uploader_display_name: Optional[str],
    original_filename: Optional[str],
) -> str:
    stamp = format_date(now, date_format)
    initials = get_initials(uploader_display_name)
    base = f"{client} {stamp} {initials}"
    if kind.extracts_archive:
        return base  # nom de dossier
    return base + file_extension(original_filename)
