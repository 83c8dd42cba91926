from __future__ import annotations

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from .config import settings
from .logging import configure_logging, logger
from .middleware import AccessLogMiddleware, RequestIDMiddleware
from .routers import health, review


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    configure_logging()
    app = FastAPI(title="VocabDeck Review API", version="0.1.0")

    configured_origins = list(settings.allowed_cors_origins)
    allow_credentials = bool(configured_origins)
    if not configured_origins:
        configured_origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=configured_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Starlette では後から追加したミドルウェアが外側で実行される。
    # RequestID を最外周に置き、AccessLog から request_id を参照する。
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(review.router, prefix="/api/review")

    logger.info(
        "app_configured",
        environment=settings.environment,
        practice_session_limit=settings.practice_session_limit,
        default_direction=settings.default_direction.value,
    )
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn (`vocabdeck-api`)."""
    import uvicorn

    uvicorn.run("vocabdeck.main:app", host=settings.api_host, port=settings.api_port)
