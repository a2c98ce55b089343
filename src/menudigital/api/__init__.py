"""FastAPI application factory for menudigital."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from menudigital.adapters.sqlite_store import SqliteStore
from menudigital.api.routers import auth, dashboard, health, menu, restaurants, tables, templates
from menudigital.config import Settings
from menudigital.defaults import INSECURE_JWT_SECRET, UPLOADS_URL_PREFIX
from menudigital.observability import add_observability_middleware
from menudigital.ports import MenuStore
from menudigital.realtime import transport
from menudigital.realtime.hub import NotificationHub
from menudigital.realtime.origin import OriginGate
from menudigital.uploads import LocalUploadStorage, UploadRejected

log = logging.getLogger("menudigital.api")


def create_app(
    settings: Settings | None = None,
    store: MenuStore | None = None,
    hub: NotificationHub | None = None,
) -> FastAPI:
    """Build and return a configured FastAPI application.

    The application owns exactly one ``NotificationHub``; it is closed when
    the application shuts down.
    """
    settings = settings or Settings()
    hub = hub or NotificationHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Notification channel available at %s", settings.socket_url)
        log.info("Allowed origins: %s", ", ".join(settings.describe_origins()))
        try:
            yield
        finally:
            await app.state.hub.shutdown()
            app.state.store.close()

    app = FastAPI(
        title="menudigital",
        description="Digital restaurant menus with live change notifications",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store configuration in app state
    app.state.settings = settings
    app.state.store = store or SqliteStore(settings.db_path)
    app.state.hub = hub
    app.state.origin_gate = OriginGate.from_settings(settings)
    app.state.uploads = LocalUploadStorage(settings.upload_dir)

    if settings.is_production and settings.jwt_secret == INSECURE_JWT_SECRET:
        log.warning("MENUDIGITAL_JWT_SECRET not set; tokens are signed with the default secret")

    # ---------------------------------------------------------------
    # Exception handlers: {"error": "..."} bodies
    # ---------------------------------------------------------------

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Extract first meaningful error for concise message
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(l) for l in first.get("loc", []))
            msg = first.get("msg", "Invalid input")
            detail = f"{loc}: {msg}" if loc else msg
        else:
            detail = "Invalid JSON body"
        return JSONResponse(
            status_code=400,
            content={"error": detail},
        )

    @app.exception_handler(UploadRejected)
    async def upload_rejected_handler(request: Request, exc: UploadRejected):
        log.warning("Upload rejected on %s: %s", request.url.path, exc,
                    extra={"path": request.url.path})
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        log.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc)},
        )

    # ---------------------------------------------------------------
    # Middleware (last added is outermost)
    # ---------------------------------------------------------------

    add_observability_middleware(app)

    # CORS: same allow-list as the notification channel's Origin Gate
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.exact_origins,
        allow_origin_regex=settings.origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ---------------------------------------------------------------
    # Routers
    # ---------------------------------------------------------------

    api = APIRouter()
    api.include_router(auth.router)
    api.include_router(restaurants.router)
    api.include_router(menu.router)
    api.include_router(dashboard.router)
    api.include_router(tables.router)
    api.include_router(templates.router)
    app.include_router(api, prefix="/api")

    # Health + metrics (no auth, no prefix)
    app.include_router(health.router)

    # Notification channel at the root path (origin check only, no token)
    app.include_router(transport.router)

    @app.get("/", include_in_schema=False)
    def root():
        return PlainTextResponse(f"API running - environment: {settings.environment}")

    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=str(app.state.uploads.root)),
        name="uploads",
    )

    return app
