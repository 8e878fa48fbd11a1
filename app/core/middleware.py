# app/core/middleware.py
from __future__ import annotations
import logging
import re
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .logging import get_logger, new_request_id, request_id_var, user_var

# un request id fourni par le client n'est repris que s'il est court et sans caractères de contrôle
_RID_OK = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# sondes de supervision : pas de bruit au niveau INFO
_QUIET_PATHS = ("/api/health",)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id + utilisateur par requête, log d'entrée/sortie avec statut et durée."""

    def __init__(self, app, header_name: str = "X-Request-Id") -> None: # type: ignore[no-untyped-def]
        super().__init__(app)
        self.header_name = header_name
        self.log = get_logger(__name__)

    def _request_id(self, request: Request) -> str:
        incoming = request.headers.get(self.header_name)
        return incoming if incoming and _RID_OK.match(incoming) else new_request_id()

    async def dispatch(self, request: Request, call_next: Callable): # type: ignore[override]
        rid = self._request_id(request)
        rid_token = request_id_var.set(rid)
        user_token = user_var.set("-")
        path = request.url.path
        quiet = path.startswith(_QUIET_PATHS)
        start = time.perf_counter()
        status = 500
        self.log.log(logging.DEBUG if quiet else logging.INFO, "request start %s %s", request.method, path)
        try:
            response: Response = await call_next(request)
            status = response.status_code
        finally:
            duration = (time.perf_counter() - start) * 1000
            level = logging.WARNING if status >= 500 else (logging.DEBUG if quiet else logging.INFO)
            self.log.log(level, "request end %s %s -> %s (%.2f ms)", request.method, path, status, duration)
            user_var.reset(user_token)
            request_id_var.reset(rid_token)
        response.headers[self.header_name] = rid
        return response
