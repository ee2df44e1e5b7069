"""
Main FastAPI application for callrelay.
"""
import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from callrelay.config import settings
from callrelay.constants import (
    ARCHIVED_FILENAME,
    CHANGELOG_FILENAME,
    DEFAULT_CONFIG_NAME,
    WEBHOOKS_FILENAME,
)
from callrelay.middleware.correlation import CorrelationIdMiddleware
from callrelay.utils.errors import RelayError, relay_error_handler
from callrelay.utils.logger import setup_logger
from callrelay.storage import JsonDocumentStore
from callrelay.models import NotificationConfig
from callrelay.clients import GoToTokenCache, GoToMessagingClient
from callrelay.services import ChangelogRecorder, ConfigStore, WebhookDispatcher
from callrelay.api import notify, status, webhooks


def validate_config():
    """
    Check required settings and the data directory.
    Logs warnings for anything missing; the server still starts.
    """
    missing = settings.missing_credentials()
    for name in missing:
        logger.warning(f"{name} is not set")
    if missing:
        logger.warning("Server is running but configuration is incomplete, SMS sends will fail")

    data_dir = settings.data_path
    if not data_dir.exists():
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created {data_dir} for persistent storage")
        except OSError as e:
            logger.error(f"Cannot create {data_dir}: {e} - config changes will not be saved")
    elif not os.access(data_dir, os.W_OK):
        logger.error(f"{data_dir} is not writable - config changes will not be saved")


def default_configs():
    """Configs created on the very first start."""
    return {
        DEFAULT_CONFIG_NAME: NotificationConfig(
            recipients=settings.my_phone_number,
            description="Default call alerts",
        )
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    # Startup
    setup_logger()
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    validate_config()

    data_dir = settings.data_path
    changelog = ChangelogRecorder(JsonDocumentStore(data_dir / CHANGELOG_FILENAME), settings.app_version)
    changelog.load()

    config_store = ConfigStore(
        JsonDocumentStore(data_dir / WEBHOOKS_FILENAME),
        JsonDocumentStore(data_dir / ARCHIVED_FILENAME),
        changelog,
        allow_overwrite_on_create=settings.allow_overwrite_on_create,
    )
    config_store.load(seed=default_configs())

    token_cache = GoToTokenCache(
        settings.goto_token_url,
        settings.goto_client_id,
        settings.goto_client_secret,
    )
    sms_client = GoToMessagingClient(
        settings.goto_sms_api_url,
        settings.goto_phone_number,
        token_cache,
    )
    dispatcher = WebhookDispatcher(
        config_store,
        sms_client,
        changelog,
        fallback_recipient=settings.my_phone_number,
    )

    # Store services in app state
    app.state.started_at = time.monotonic()
    app.state.changelog = changelog
    app.state.config_store = config_store
    app.state.token_cache = token_cache
    app.state.sms_client = sms_client
    app.state.dispatcher = dispatcher

    for name in config_store.active_names():
        logger.info(f"Webhook ready: POST /sms-whook/{name}")
    logger.info(f"{settings.app_name} started successfully on port {settings.port}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await sms_client.close()
    await token_cache.close()
    logger.info(f"{settings.app_name} shut down complete")


# Create FastAPI app
app = FastAPI(
    title="callrelay",
    description="Relays phone-system call events to SMS through GoTo Connect",
    version=settings.app_version,
    lifespan=lifespan
)

# Correlation ID middleware (first, to capture all requests)
app.add_middleware(CorrelationIdMiddleware)

app.add_exception_handler(RelayError, relay_error_handler)

# Include routers
app.include_router(status.router)
app.include_router(notify.router)
app.include_router(webhooks.router)


def run():
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
