"""
Notification config management API.

Errors raised by the config store (RelayError subclasses) are rendered by the
application's exception handler in the standard {"detail": {...}} format.
"""
from datetime import datetime, timezone
from typing import Any
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger

from callrelay.config import settings
from callrelay.utils.errors import InvalidInputError

router = APIRouter(prefix="/api", tags=["webhooks"])


async def _json_body(request: Request) -> Any:
    """Parsed JSON body, or None when empty. Malformed JSON raises InvalidInputError."""
    if not (await request.body()).strip():
        return None
    try:
        return await request.json()
    except ValueError as e:
        raise InvalidInputError("Request body is not valid JSON") from e


async def _json_object(request: Request, what: str) -> dict:
    body = await _json_body(request)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidInputError(f"{what} must be a JSON object")
    return body


@router.get("/webhooks")
async def list_webhooks(request: Request):
    """Active and archived configs."""
    snapshot = request.app.state.config_store.list()
    return {**snapshot.to_dict(), "version": settings.app_version}


@router.post("/webhooks")
async def create_webhook(request: Request):
    """Create a config, replacing an active one of the same name when allowed."""
    body = await _json_object(request, "Body of POST /api/webhooks")
    name = body.get("name")
    config = await request.app.state.config_store.create(name, body.get("config"))
    return {"success": True, "name": name, "config": config.to_dict()}


@router.put("/webhooks/{name}")
async def update_webhook(name: str, request: Request):
    """Merge the given fields over an active config."""
    fields = await _json_body(request)
    old, new = await request.app.state.config_store.update(name, fields)
    return {"success": True, "name": name, "old": old.to_dict(), "config": new.to_dict()}


@router.post("/webhooks/{name}/archive")
async def archive_webhook(name: str, request: Request):
    config = await request.app.state.config_store.archive(name)
    return {"success": True, "name": name, "config": config.to_dict()}


@router.post("/webhooks/{name}/restore")
async def restore_webhook(name: str, request: Request):
    config = await request.app.state.config_store.restore(name)
    return {"success": True, "name": name, "config": config.to_dict()}


@router.get("/changelog")
async def get_changelog(request: Request):
    """Changelog entries, oldest first."""
    return {"changelog": request.app.state.changelog.to_list()}


@router.get("/export")
async def export_data(request: Request):
    """Full dump of configs and changelog as a downloadable JSON file."""
    now = datetime.now(timezone.utc)
    data = {
        **request.app.state.config_store.export(),
        "version": settings.app_version,
        "exportedAt": now.isoformat(),
    }

    filename = f"webhooks-export-{now.strftime('%Y%m%d-%H%M%S')}.json"
    logger.info(f"Exporting {len(data['webhooks'])} active and {len(data['archived'])} archived configs")
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_data(request: Request):
    """Merge configs from an export into the current state."""
    body = await _json_object(request, "Import body")
    counts = await request.app.state.config_store.import_data(body.get("webhooks"), body.get("archived"))
    return {"success": True, "imported": counts}
