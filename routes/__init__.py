# routes/__init__.py
from fastapi import APIRouter

import routes.auth as auth_routes
import routes.files as files_routes
import routes.health as health_routes
import routes.settings as settings_routes
import routes.users as users_routes
import routes.version as version_routes

api_router = APIRouter(prefix="/api")
api_router.include_router(files_routes.router)
api_router.include_router(settings_routes.router)
api_router.include_router(users_routes.router)
api_router.include_router(auth_routes.router)
api_router.include_router(version_routes.router)
api_router.include_router(health_routes.router)
