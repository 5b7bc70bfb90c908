"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tempwallet import __version__
from tempwallet.config import get_settings
from tempwallet.errors import WalletBackendError
from tempwallet.storage.database import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


async def wallet_error_handler(request: Request, exc: WalletBackendError) -> JSONResponse:
    """Render service errors as ``{ok: false, error, message}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.error_code, "message": exc.message},
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "validation_error", "message": message},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Tempwallet API",
        description="Custodial wallet backend for off-chain settlement",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalletBackendError, wallet_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Register routes
    from tempwallet.api.routes import app_session, channel, custody, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(custody.router)
    app.include_router(channel.router)
    app.include_router(app_session.router)

    return app


# Default app instance
app = create_app()
