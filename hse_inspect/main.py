"""FastAPI application entrypoint. No business logic; only wiring, error handlers and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hse_inspect.api.v1 import router as v1_router
from hse_inspect.core.config import Settings, get_settings
from hse_inspect.core.errors import (
    HSEError,
    InternalError,
    MethodNotAllowedError,
    NotFoundError,
)
from hse_inspect.services.seed import migrate_legacy_users, seed_demo_users
from hse_inspect.store import KeyValueStore, SqlStore, build_store
from hse_inspect.web.route_guard import PageGuardMiddleware

logger = logging.getLogger(__name__)

_ROUTING_ERRORS: dict[int, HSEError] = {
    status.HTTP_404_NOT_FOUND: NotFoundError("Not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: MethodNotAllowedError("Method not allowed"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: KeyValueStore = app.state.store
    settings: Settings = app.state.settings
    if isinstance(store, SqlStore):
        store.create_tables()
    migrate_legacy_users(store, settings)
    if settings.SEED_DEMO_USERS:
        seed_demo_users(store, settings)
    yield


def _field_names(exc: RequestValidationError) -> list[str]:
    names: list[str] = []
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(str(part) for part in loc) or "body"
        if name not in names:
            names.append(name)
    return names


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HSEError)
    async def hse_error_handler(request: Request, exc: HSEError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = _field_names(exc)
        logger.info("Rejected request body path=%s fields=%s", request.url.path, fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing or invalid fields", "required": fields},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = _ROUTING_ERRORS.get(exc.status_code)
        content = error.to_envelope() if error is not None else {"error": str(exc.detail)}
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error path=%s", request.url.path)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_envelope())


def create_app(store: KeyValueStore | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="HSE Inspection API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    register_exception_handlers(app)

    app.add_middleware(PageGuardMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "HSE Inspection API"}

    return app


app = create_app()
