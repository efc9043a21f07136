# catalog_auth/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import RedirectResponse

from catalog_auth.adapters.configuration.config import Settings, settings as default_settings
from catalog_auth.adapters.inbound.api.v1.router import api_router
from catalog_auth.container import ServiceContainer
from catalog_auth.shared.middleware import (
    AsyncExceptionMiddleware,
    AsyncRequestLoggingMiddleware,
    AsyncSecurityHeadersMiddleware,
    validation_exception_handler,
)

logger = logging.getLogger(__name__)


# ─── UNIQUE LOGGING CONFIGURATION ─────────────────────────────────────────────────
def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
# ────────────────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Builds the service container on startup (unless one was injected)
    and releases it on shutdown.
    """
    logger.info("Token service starting up...")

    container: Optional[ServiceContainer] = getattr(app.state, "container", None)
    if container is None:
        container = ServiceContainer.build(app.state.settings)
        app.state.container = container

    # Create database tables if they don't exist
    await container.database.create_all()

    if not container.key_manager.is_configured:
        logger.error(f"Token issuance disabled: {container.key_manager.load_error}")

    yield

    logger.info("Token service shutting down...")
    await container.aclose()
    app.state.container = None


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use; defaults to the environment
        container: Pre-built services; built from settings in the lifespan when omitted
    """
    settings = container.settings if container is not None else (settings or default_settings)
    configure_logging(settings)

    app = FastAPI(
        title="Catalog Token Service",
        description="Client registry, application permissions and OAuth2 client-credentials tokens",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    # Middlewares (the last one added runs first). Exceptions are rendered
    # innermost so error responses still get headers and a log line.
    app.add_middleware(AsyncExceptionMiddleware)
    app.add_middleware(AsyncSecurityHeadersMiddleware)
    app.add_middleware(AsyncRequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs():
        return RedirectResponse(url="/docs")

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        spec = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )

        # Remove 422 responses: request validation errors are answered with 400
        for path in spec.get("paths", {}).values():
            for op in path.values():
                op.get("responses", {}).pop("422", None)

        app.openapi_schema = spec
        return spec

    app.openapi = custom_openapi
    return app


app = create_app()
