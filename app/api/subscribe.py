import hmac
import json
import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError, StoreFailedError, ValidationError
from app.core.sheets import store_subscription

logger = logging.getLogger(__name__)

router = APIRouter()

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def _read_json_body(request: Request) -> dict:
    # Los clientes externos (no-cors) mandan JSON como text/plain
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _check_bearer(request: Request, expected: str) -> None:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.strip().encode(), expected.encode()):
        raise ValidationError("Bad or missing bearer token", status_code=401, public_message="Unauthorized")


@router.api_route("/subscribe", methods=ANY_METHOD)
async def subscribe(request: Request, settings: Settings = Depends(get_settings)):
    if request.method != "POST":
        raise ValidationError(f"Method {request.method} not allowed",
                              status_code=405, public_message="Method not allowed")

    if settings.subscribe_token:
        _check_bearer(request, settings.subscribe_token)

    body = await _read_json_body(request)
    email = body.get("email")
    if not email or not isinstance(email, str):
        raise ValidationError(public_message="Email is required.")

    if not settings.sheet_id:
        logger.error("GOOGLE_SHEETS_SHEET_ID is not set; rejecting subscription")
        raise ConfigurationError(public_message="Sheet ID is not configured.")

    source = body.get("source")
    if not isinstance(source, str):
        source = None

    try:
        await run_in_threadpool(
            store_subscription, settings, email, source, request.headers.get("user-agent")
        )
    except Exception as e:
        # Nunca devolvemos el detalle (credenciales, infraestructura) al cliente
        logger.exception("Failed to store subscription for %s", email)
        raise StoreFailedError(str(e)) from e

    return {"ok": True}
