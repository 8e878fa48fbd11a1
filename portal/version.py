# portal/version.py
# Version installée vs version publiée (pyproject.toml distant).
from __future__ import annotations
import tomllib
from importlib.metadata import PackageNotFoundError, version
from typing import Optional

import httpx

from app.core.logging import get_logger
from .errors import ConfigurationError, PortalError

logger = get_logger(__name__)

DIST_NAME = "project-portal"


class VersionCheckFailed(PortalError):
    reason = "version_check_failed"


def local_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        logger.warning("%s is not installed, local version unknown", DIST_NAME)
        return "unknown"


class VersionChecker:
    def __init__(self, remote_url: Optional[str], *, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.remote_url = remote_url
        self.timeout = timeout
        self.transport = transport

    async def remote_version(self) -> str:
        if not self.remote_url:
            raise ConfigurationError("No remote version URL configured")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.get(self.remote_url, headers={"Cache-Control": "no-cache"})
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise VersionCheckFailed(f"Failed to fetch remote pyproject.toml: {e}") from e
        try:
            return tomllib.loads(resp.text)["project"]["version"]
        except (tomllib.TOMLDecodeError, KeyError) as e:
            raise VersionCheckFailed(f"Remote pyproject.toml has no version: {e}") from e

    async def check(self) -> dict:
        local = local_version()
        remote = await self.remote_version()
        logger.info("version check", extra={"local": local, "remote": remote})
        return {"localVersion": local, "remoteVersion": remote, "upToDate": local == remote}
