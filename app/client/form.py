# app/client/form.py
from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from pathlib import Path

from app.core.config import ClientSettings

logger = logging.getLogger(__name__)

STORAGE_KEY = "entru_emails"
SEEN_LIST_CAP = 200
SOURCE = "coming-soon"

MSG_INVALID = "Please enter a valid email."
MSG_NO_ENDPOINT = "Email endpoint is not configured yet."
MSG_DUPLICATE = "This email is already on the list."
MSG_FAILED = "Could not submit. Please try again."
MSG_SUCCESS = "Thanks. You are on the early access list."


def normalize_email(raw: str | None) -> str:
    return (raw or "").strip().lower()


class SeenList:
    """
    Lista local (orientativa) de emails ya enviados, guardada como array JSON
    bajo una sola clave de un fichero JSON. Solo conserva los 200 más recientes.
    """

    def __init__(self, path: str | Path, key: str = STORAGE_KEY, cap: int = SEEN_LIST_CAP):
        self.path = Path(path)
        self.key = key
        self.cap = cap

    def _read_store(self) -> dict:
        try:
            store = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            # Ilegible o corrupto: se trata como vacío
            return {}
        return store if isinstance(store, dict) else {}

    def load(self) -> list[str]:
        seen = self._read_store().get(self.key, [])
        if not isinstance(seen, list):
            return []
        return [e for e in seen if isinstance(e, str)]

    def __contains__(self, email: str) -> bool:
        return email in self.load()

    def add(self, email: str) -> list[str]:
        seen = (self.load() + [email])[-self.cap:]
        store = self._read_store()
        store[self.key] = seen
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(store), encoding="utf-8")
        return seen


@dataclass
class SubmitResult:
    ok: bool
    message: str
    network: bool = False  # si se llegó a hacer la petición


class FormHandler:
    def __init__(self, settings: ClientSettings | None = None, seen: SeenList | None = None):
        self.settings = settings or ClientSettings()
        self.seen = seen or SeenList(self.settings.seen_list_path)
        self.email = ""
        self.submitted = False
        self.error = ""

    @property
    def is_external(self) -> bool:
        return self.settings.email_endpoint.startswith("http")

    def _build_request(self, email: str) -> urllib.request.Request:
        endpoint = self.settings.email_endpoint
        body = json.dumps({"email": email, "source": SOURCE}).encode("utf-8")

        if self.is_external:
            # Modo "no-cors": text/plain, sin Authorization, respuesta opaca
            return urllib.request.Request(
                endpoint, data=body, method="POST",
                headers={"Content-Type": "text/plain"},
            )

        headers = {"Content-Type": "application/json"}
        if self.settings.email_token:
            headers["Authorization"] = f"Bearer {self.settings.email_token}"
        url = urllib.parse.urljoin(self.settings.app_origin, endpoint)
        return urllib.request.Request(url, data=body, method="POST", headers=headers)

    def _send(self, email: str) -> None:
        req = self._build_request(email)
        try:
            with urllib.request.urlopen(req, timeout=self.settings.http_timeout) as resp:
                resp.read()
        except urllib.error.HTTPError as e:
            if not self.is_external:
                raise
            # Respuesta opaca: el estado HTTP no se mira
            logger.debug("Ignoring HTTP %s from external endpoint", e.code)

    def submit(self, raw_email: str | None = None) -> SubmitResult:
        if raw_email is not None:
            self.email = raw_email
        self.error = ""

        email = normalize_email(self.email)
        if not email:
            return self._fail(MSG_INVALID)

        if not self.settings.email_endpoint:
            return self._fail(MSG_NO_ENDPOINT)

        if email in self.seen:
            return self._fail(MSG_DUPLICATE)

        try:
            self._send(email)
            self.seen.add(email)
        except (OSError, http.client.HTTPException, ValueError) as e:
            logger.warning("Subscription failed: %s", e)
            return self._fail(MSG_FAILED, network=True)

        self.submitted = True
        self.email = ""
        return SubmitResult(True, MSG_SUCCESS, network=True)

    def _fail(self, message: str, network: bool = False) -> SubmitResult:
        self.error = message
        return SubmitResult(False, message, network=network)
