# app/main.py
from app.core.logging import setup_logging, get_logger
from app.core.config import get_settings
setup_logging(get_settings().app.log_level, get_settings().app.log_file)

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.middleware import RequestContextMiddleware
from portal.errors import PortalError
from routes import api_router

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- START-UP ---
    cfg = get_settings()
    log.info("starting %s (env=%s, data=%s)", cfg.app.name, cfg.app.env, cfg.data.dir)
    try:
        yield
    finally:
        # --- SHUTDOWN ---
        log.info("stopping %s", cfg.app.name)


app = FastAPI(title="project-portal", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().app.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error", "reason": "internal_error"}, status_code=500)


app.include_router(api_router)

log.info("App ready.")

# uvicorn app.main:app --reload --port 8050
