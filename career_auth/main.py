from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from career_auth.api.cookies import API_PREFIX
from career_auth.api.errors import register_error_handlers
from career_auth.api.routers import admin, auth, oauth, system, users
from career_auth.core.db import create_schema, get_engine
from career_auth.shared.config import get_settings


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if settings.db_auto_create and settings.postgres_dsn:
        create_schema(get_engine(settings.postgres_dsn))
        logger.info("main: schema_created")

    application = FastAPI(title="Career Auth API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(application)

    application.include_router(system.router, prefix=API_PREFIX)
    application.include_router(auth.router, prefix=API_PREFIX)
    application.include_router(oauth.router, prefix=API_PREFIX)
    application.include_router(users.router, prefix=API_PREFIX)
    application.include_router(admin.router, prefix=API_PREFIX)
    return application


app = create_app()
