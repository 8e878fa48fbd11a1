# routes/files.py
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from app.core.auth import require_permission
from app.core.config import AuthCfg
from app.core.logging import get_logger
from app.core.resources import get_auth_config, get_browser, get_dispatcher
from portal.browser import FileBrowser
from portal.errors import Unauthorized
from portal.models import DirectoryEntry, Identity, UploadResult
from portal.uploads import UploadDispatcher

router = APIRouter(prefix="/files", tags=["files"])
logger = get_logger(__name__)


def _attachment(filename: str) -> str:
    # en-têtes latin-1 : nom ASCII de repli + filename* encodé (RFC 5987)
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("", response_model=List[DirectoryEntry]) # GET /api/files?view=/data/ACME
def list_files(
    view: Optional[str] = Query(None, description="Dossier absolu sous basePath"),
    browser: FileBrowser = Depends(get_browser),
    _: Optional[Identity] = Depends(require_permission("files.read")),
):
    return browser.list(view)


@router.get("/download") # GET /api/files/download?path=/data/ACME/schemas&zip=true
def download(
    path: Optional[str] = Query(None),
    as_zip: bool = Query(False, alias="zip"),
    browser: FileBrowser = Depends(get_browser),
    _: Optional[Identity] = Depends(require_permission("files.read")),
):
    dl = browser.download(path, as_zip=as_zip)
    logger.info("GET:download", extra={"target": path, "media_type": dl.media_type})
    return StreamingResponse(dl.chunks, media_type=dl.media_type,
                             headers={"Content-Disposition": _attachment(dl.filename)})


@router.post("/upload", response_model=UploadResult, response_model_exclude_none=True)
async def upload(
    file: Optional[UploadFile] = File(None),
    client: Optional[str] = Form(None),
    kind: Optional[str] = Form(None),
    identity: Optional[Identity] = Depends(require_permission("files.write")),
    auth: AuthCfg = Depends(get_auth_config),
    dispatcher: UploadDispatcher = Depends(get_dispatcher),
):
    if auth.require_upload_session and identity is None:
        raise Unauthorized("Upload requires an authenticated session")

    data = None
    if file is not None:
        data = await file.read()
        await file.close()
    logger.info("POST:upload:start", extra={"client": client, "kind": kind, "size": len(data or b"")})
    return await run_in_threadpool(
        dispatcher.handle_upload,
        client=client,
        kind=kind,
        uploader=identity,
        filename=file.filename if file is not None else None,
        data=data,
    )
