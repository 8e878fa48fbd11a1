# app/core/logging.py
# Logs console (+ fichier tournant optionnel), chaque ligne porte request_id et l'utilisateur de la session.
from __future__ import annotations
import contextvars
import logging
import logging.config
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

# Contexte par requête, posé par le middleware (request_id) et par l'auth (user)
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
user_var: contextvars.ContextVar[str] = contextvars.ContextVar("user", default="-")

# bibliothèques trop bavardes au niveau INFO/DEBUG
_QUIET = ("multipart", "python_multipart", "httpx", "httpcore")


class RequestContextFilter(logging.Filter):
    """Ajoute request_id et user sur chaque record (le format les exige)."""

    def filter(self, record: logging.LogRecord) -> bool: # type: ignore[override]
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        if not hasattr(record, "user"):
            record.user = user_var.get()
        return True


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    fmt = "%(asctime)s | %(levelname)s | %(name)s | req=%(request_id)s user=%(user)s | %(message)s"

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "std",
            "filters": ["request_ctx"],
        },
        "uvicorn.access": {
            "class": "logging.StreamHandler",
            "formatter": "access",
        },
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_file),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "formatter": "std",
            "filters": ["request_ctx"],
        }

    loggers: Dict[str, Dict[str, Any]] = {
        "uvicorn": {"level": level},
        "uvicorn.error": {"level": level},
        "uvicorn.access": {
            "level": level,
            "handlers": ["uvicorn.access"],
            "propagate": False,
        },
    }
    loggers.update({name: {"level": "WARNING"} for name in _QUIET})

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_ctx": {"()": RequestContextFilter}},
            "formatters": {
                "std": {"format": fmt},
                "access": {"format": "%(asctime)s | %(levelname)s | %(message)s"},
            },
            "handlers": handlers,
            "root": {"level": level, "handlers": [h for h in handlers if h != "uvicorn.access"]},
            "loggers": loggers,
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


def new_request_id() -> str:
    return uuid.uuid4().hex


def bind_user(user_id: Optional[str]) -> None:
    """Associe l'utilisateur authentifié aux logs de la requête en cours."""
    user_var.set(user_id or "-")
