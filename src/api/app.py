"""FastAPI application factory"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.error import install_exception_handlers
from src.api.middleware.logging_middleware import RequestLoggingMiddleware
from src.api.routes import credits, payments

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def setup_sentry(config) -> None:
    if not config.ENABLE_SENTRY or not config.DSN_SENTRY:
        return

    import sentry_sdk

    sentry_sdk.init(
        dsn=config.DSN_SENTRY,
        environment=config.SENTRY_ENVIRONMENT,
        send_default_pii=False,
    )
    logger.info(f"Sentry enabled for environment {config.SENTRY_ENVIRONMENT}")


def create_app(config) -> FastAPI:
    setup_logging(config.LOG_LEVEL)
    setup_sentry(config)

    app = FastAPI(
        title="Business Credits Service",
        description="Prepaid credit ledger and payment callback reconciliation",
        version="1.0.0",
    )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        app.add_middleware(RequestLoggingMiddleware)

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    install_exception_handlers(app)

    app.include_router(credits.router, prefix=config.API_PREFIX)
    app.include_router(payments.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
