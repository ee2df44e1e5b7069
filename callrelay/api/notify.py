"""
Webhook trigger and test SMS endpoints.

These are called by the phone system's dial plan, so failures are reported
as {"success": false, "error": ...} rather than the management error format.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from loguru import logger

from callrelay.constants import DEFAULT_CONFIG_NAME
from callrelay.utils.errors import DispatchError, NotFoundError, RelayError
from callrelay.utils.phone import mask_phone_number

router = APIRouter(tags=["notify"])


class TestSmsRequest(BaseModel):
    """Optional body for a test send."""

    type: Optional[str] = None
    message: Optional[str] = None


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Event payload as a dict; an empty or non-JSON body is an empty event."""
    body = await request.body()
    if not body:
        return {}
    try:
        payload = await request.json()
    except ValueError:
        logger.warning(f"Webhook body on {request.url.path} is not JSON, ignoring it")
        return {}
    return payload if isinstance(payload, dict) else {}


def _failure(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


async def _trigger(request: Request, name: str):
    dispatcher = request.app.state.dispatcher
    payload = await _read_payload(request)

    try:
        result = await dispatcher.handle(name, payload)
    except NotFoundError as e:
        logger.warning(f"Webhook for unknown config '{name}'")
        return _failure(404, e.message)
    except DispatchError as e:
        logger.error(f"Webhook '{name}' failed: {e.message}")
        return _failure(500, e.message)

    return result.to_dict()


@router.post("/sms-whook/{name}")
async def trigger_webhook(name: str, request: Request):
    """Send the SMS configured under `name` for an inbound call event."""
    return await _trigger(request, name)


@router.post("/notify/{name}")
async def trigger_webhook_legacy(name: str, request: Request):
    """Legacy path for /sms-whook/{name}."""
    return await _trigger(request, name)


@router.post("/dial-plan-webhook")
async def trigger_dial_plan_webhook(request: Request):
    """Original single-config route, always uses the default config."""
    return await _trigger(request, DEFAULT_CONFIG_NAME)


@router.post("/test-sms")
async def send_test_sms(request: Request, body: Optional[TestSmsRequest] = None):
    """Send a test message to a config's recipients (default: general)."""
    body = body or TestSmsRequest()
    dispatcher = request.app.state.dispatcher

    logger.info(f"Test SMS requested for '{body.type or DEFAULT_CONFIG_NAME}'")
    try:
        result = await dispatcher.send_test(body.type, body.message)
    except RelayError as e:
        logger.error(f"Test SMS failed: {e.message}")
        return _failure(
            500,
            e.message,
            hint="Check your environment variables and GoTo credentials",
        )

    return {
        **result.to_dict(),
        "sentTo": [mask_phone_number(n) for n in result.recipients],
    }
