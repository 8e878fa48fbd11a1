# routes/version.py
from fastapi import APIRouter, Depends

from app.core.resources import get_version_checker
from portal.version import VersionChecker

router = APIRouter(prefix="/version", tags=["version"])


@router.get("") # GET /api/version
async def check_version(checker: VersionChecker = Depends(get_version_checker)):
    return await checker.check()
