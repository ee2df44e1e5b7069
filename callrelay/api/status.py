"""
Status API routes.
"""
import time
from datetime import datetime, timezone
from fastapi import APIRouter, Request

from callrelay.config import settings
from callrelay.utils.phone import mask_phone_number

router = APIRouter(tags=["status"])


def _base_url(request: Request) -> str:
    return (settings.public_base_url or str(request.base_url)).rstrip("/")


def _configured(value: str) -> str:
    return "configured" if value else "missing"


@router.get("/")
async def get_status(request: Request):
    """Service status, webhook URLs for every active config and a credential checklist."""
    base = _base_url(request)
    store = request.app.state.config_store

    return {
        "status": "running",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "webhooks": {name: f"{base}/sms-whook/{name}" for name in store.active_names()},
            "test": f"{base}/test-sms",
            "health": f"{base}/health",
            "config": f"{base}/config",
            "management": f"{base}/api/webhooks",
        },
        "config": {
            "gotoPhone": _configured(settings.goto_phone_number),
            "alertPhone": _configured(settings.my_phone_number),
            "credentials": _configured(settings.goto_client_id and settings.goto_client_secret),
        },
    }


@router.get("/health")
async def health_check(request: Request):
    """Liveness check, no dependencies are contacted."""
    uptime = time.monotonic() - request.app.state.started_at
    return {
        "status": "healthy",
        "uptime": f"{uptime:.0f} seconds",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/config")
async def get_config_summary(request: Request):
    """Active configs without raw recipient numbers."""
    snapshot = request.app.state.config_store.list()

    summary = {}
    for name, config in snapshot.active.items():
        recipients = config.recipient_list
        summary[name] = {
            "description": config.description,
            "recipientCount": len(recipients),
            "recipients": [mask_phone_number(n) for n in recipients],
            "tags": config.tags,
            "browserNotify": config.browser_notify,
        }

    return {
        "webhooks": summary,
        "archivedCount": len(snapshot.archived),
        "version": settings.app_version,
    }
