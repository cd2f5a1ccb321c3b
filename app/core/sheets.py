# app/core/sheets.py
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone

from app.core.config import Settings
from app.core.crypto import build_assertion
from app.core.errors import AppendError, TokenExchangeError

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEFAULT_SOURCE = "coming-soon"


def exchange_assertion(assertion: str, token_url: str, timeout: float = 10.0) -> str:
    """Cambia la aserción firmada por un access token (una sola llamada, sin reintentos)."""
    data = urllib.parse.urlencode({
        "grant_type": JWT_BEARER_GRANT,
        "assertion": assertion,
    }).encode()
    req = urllib.request.Request(
        token_url,
        data=data,
        method="POST",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            payload = json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        raise TokenExchangeError(f"Unable to fetch Google access token: HTTP {e.code}") from e
    except (urllib.error.URLError, TimeoutError, ValueError) as e:
        raise TokenExchangeError(f"Unable to fetch Google access token: {e}") from e

    try:
        return payload["access_token"]
    except (KeyError, TypeError) as e:
        raise TokenExchangeError("Token response has no access_token") from e


def get_access_token(settings: Settings, now: int | None = None) -> str:
    # Token nuevo en cada petición: se usa una vez y se descarta
    assertion = build_assertion(settings.google_client_email, settings.google_private_key, now)
    return exchange_assertion(assertion, settings.token_url, settings.http_timeout)


def _append_url(settings: Settings) -> str:
    sheet_range = f"{urllib.parse.quote(settings.sheet_tab, safe='')}!A:D"
    return (
        f"{settings.sheets_api_url.rstrip('/')}/spreadsheets/{settings.sheet_id}"
        f"/values/{sheet_range}:append?valueInputOption=USER_ENTERED"
    )


def append_row(settings: Settings, access_token: str, row: list[str]) -> None:
    body = json.dumps({"values": [row]}).encode("utf-8")
    req = urllib.request.Request(
        _append_url(settings),
        data=body,
        method="POST",
        headers={
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=settings.http_timeout) as resp:
            resp.read()
    except urllib.error.HTTPError as e:
        raise AppendError(f"Unable to write to Google Sheet: HTTP {e.code}") from e
    except (urllib.error.URLError, TimeoutError) as e:
        raise AppendError(f"Unable to write to Google Sheet: {e}") from e


def subscription_row(email: str, source: str | None, user_agent: str | None,
                     when: datetime | None = None) -> list[str]:
    """Fila [timestamp ISO-8601, email, source, user-agent] en el orden de columnas A:D."""
    when = when or datetime.now(timezone.utc)
    return [
        when.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        email,
        source or DEFAULT_SOURCE,
        user_agent or "",
    ]


def store_subscription(settings: Settings, email: str, source: str | None = None,
                       user_agent: str | None = None) -> None:
    access_token = get_access_token(settings)
    append_row(settings, access_token, subscription_row(email, source, user_agent))
    logger.info("Subscription stored for %s", email)
