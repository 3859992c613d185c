"""
ASGI entry point for the Guardian API.

`create_app` assembles the FastAPI instance; the module-level `app` is
what uvicorn imports:

    uvicorn guardian.main:app --reload

Collaborators (model client, object storage, frame sampler, document
store) are built once at startup and shared by every request. Tests hand
in a ServiceContainer of fakes instead.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.dependencies import ServiceContainer, build_services
from .api.routes import analyze, auth, health
from .config.settings import Settings, get_settings

logging.basicConfig(
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)

DESCRIPTION = """
Checks text, images and short videos for misinformation.

* `POST /api/analyze/video` samples frames across an uploaded clip and asks
  the model for one verdict over all of them
* `POST /api/analyze/image` judges a single uploaded image
* `POST /api/analyze/text` judges a JSON `{"text": ...}` body
* `POST /api/auth/signup` and `POST /api/auth/login` manage accounts
"""

ROUTERS = (
    (health.router, "/health", "Health"),
    (analyze.router, "/api/analyze", "Analysis"),
    (auth.router, "/api/auth", "Auth"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    missing = settings.validate_required_fields()
    if missing:
        logger.error("Configuration incomplete", extra={"missing_fields": missing})

    if app.state.services is None:
        app.state.services = build_services(settings)

    logger.info("Guardian API ready", extra={"version": settings.api_version})
    yield
    logger.info("Guardian API stopped")


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Log anything that escaped a route and answer with a bare 500."""
    logger.error(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "msg": "Internal server error"},
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build a configured FastAPI application.

    Settings default to the container's settings when one is passed, and
    to the environment otherwise.
    """
    if settings is None:
        settings = services.settings if services is not None else get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=DESCRIPTION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    app.add_exception_handler(Exception, unhandled_error)

    @app.get("/", include_in_schema=False)
    async def index():
        return {"name": settings.api_title, "version": settings.api_version, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("guardian.main:app", host="0.0.0.0", port=8000, log_level=get_settings().log_level.lower())
