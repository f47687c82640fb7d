from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from easylist_backend.config import settings
from easylist_backend.db import dispose_engine_cache
from easylist_backend.error_handlers import register_error_handlers
from easylist_backend.middleware import RequestIdMiddleware
from easylist_backend.routers import folders, health, items, lists, users


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    yield
    # aiosqlite worker threads must not outlive the app.
    dispose_engine_cache()


logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

logger = logging.getLogger(__name__)
for msg in settings.security_warnings():
    logger.warning("SECURITY WARNING: %s", msg)


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=_lifespan)

app.add_middleware(RequestIdMiddleware)

origins = settings.cors_origins_list()
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-Id"],
    )

register_error_handlers(app)

app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(folders.router, prefix=settings.api_prefix)
app.include_router(lists.router, prefix=settings.api_prefix)
app.include_router(items.router, prefix=settings.api_prefix)


@app.api_route(
    f"{settings.api_prefix.rstrip('/')}/{{path:path}}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    include_in_schema=False,
)
async def _api_fallback_not_found(path: str) -> None:  # noqa: ARG001
    raise HTTPException(status_code=404, detail="The requested resource could not be found")
