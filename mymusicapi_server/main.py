# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""MyMusicAPI Server - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from mymusicapi_server.config import settings
from mymusicapi_server.database import init_db
from mymusicapi_server.errors import TrackApiError
from mymusicapi_server.routers import admin, auth, tracks
from mymusicapi_server.services.storage import LOCAL_MEDIA_PREFIX

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _get_cors_origins() -> list[str]:
    raw = (settings.cors_origins or "*").strip()
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await init_db()
    if not settings.admin_password:
        logger.info(
            "ADMIN_PASSWORD not set - admin login only works once a password override is stored "
            "(python -m mymusicapi_server.scripts.set_admin_password)"
        )
    yield
    # shutdown


app = FastAPI(
    title="MyMusicAPI Server",
    description="Music track metadata API for games, with a password-gated admin surface",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status, and duration for each request (no body or auth headers)."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.exception_handler(TrackApiError)
async def track_api_error_handler(request: Request, exc: TrackApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 here, not FastAPI's default 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"detail": f"{where}: {message}" if where else message},
    )


def _missing_table(message: str) -> bool:
    m = message.lower()
    return "no such table" in m or ("relation" in m and "does not exist" in m)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Report the driver's message (never the statement or its parameters)."""
    origin = getattr(exc, "orig", None) or exc
    message = (str(origin).splitlines() or [exc.__class__.__name__])[0]
    logger.error("Database error on %s %s: %s", request.method, request.url.path, message)
    content = {"detail": message}
    if _missing_table(message):
        content["hint"] = "Database tables are missing. Restart the server to create them (init_db)."
    return JSONResponse(status_code=500, content=content)


app.include_router(tracks.router)
app.include_router(auth.router)
app.include_router(admin.router)

if (settings.storage_backend or "").strip().lower() == "local":
    settings.local_storage_path.mkdir(parents=True, exist_ok=True)
    app.mount(LOCAL_MEDIA_PREFIX, StaticFiles(directory=str(settings.local_storage_path)), name="media")


@app.get("/")
async def root():
    """API info."""
    return {
        "name": "MyMusicAPI Server",
        "version": VERSION,
        "endpoints": ["/tracks", "/tracks/{id}", "/random", "/tags"],
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check for load balancers."""
    return {"status": "ok"}
