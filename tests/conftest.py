# tests/conftest.py
import io
import json
import sys
import urllib.error
from pathlib import Path
from urllib import request as _req

import pytest
from fastapi.testclient import TestClient

# --- Asegurar que podemos importar 'app' desde la raíz del repo ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# --- Clave efímera (RSA 2048) para la cuenta de servicio ---
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

SERVICE_EMAIL = "waitlist@entru-test.iam.gserviceaccount.com"
SHEET_ID = "sheet-123"
TOKEN_URL = "https://oauth2.test/token"
SHEETS_API_URL = "https://sheets.test/v4"

_ENV_VARS = (
    "GOOGLE_SHEETS_CLIENT_EMAIL", "GOOGLE_SHEETS_PRIVATE_KEY", "GOOGLE_SHEETS_SHEET_ID",
    "GOOGLE_SHEETS_TAB_NAME", "GOOGLE_TOKEN_URL", "GOOGLE_SHEETS_API_URL", "SUBSCRIBE_TOKEN",
    "EMAIL_ENDPOINT", "EMAIL_TOKEN", "APP_ORIGIN", "SEEN_LIST_PATH", "CORS_ORIGINS",
)


class _Resp:
    def __init__(self, payload: bytes): self._payload = payload
    def read(self): return self._payload
    def __enter__(self): return self
    def __exit__(self, exc_type, exc, tb): return False


class FakeUpstream:
    """
    Sustituye urllib.request.urlopen: registra cada petición y responde
    según la URL (token de Google, append de Sheets o cualquier otra).
    """

    def __init__(self):
        self.calls = []
        self.token_status = 200
        self.append_status = 200
        self.default_status = 200
        self.token_payload = {"access_token": "ya29.test-token", "expires_in": 3600, "token_type": "Bearer"}
        self.network_error = None

    def _reply(self, url: str, status: int, payload: dict):
        if status >= 400:
            raise urllib.error.HTTPError(url, status, "error", {}, io.BytesIO(b"{}"))
        return _Resp(json.dumps(payload).encode("utf-8"))

    def __call__(self, req, timeout=None):
        self.calls.append(req)
        if self.network_error is not None:
            raise self.network_error
        url = req.full_url
        if url.startswith(TOKEN_URL):
            return self._reply(url, self.token_status, self.token_payload)
        if url.startswith(SHEETS_API_URL):
            return self._reply(url, self.append_status, {"updates": {"updatedRows": 1}})
        return self._reply(url, self.default_status, {"ok": True})

    def calls_to(self, prefix: str):
        return [c for c in self.calls if c.full_url.startswith(prefix)]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Nada del entorno del desarrollador debe colarse en las pruebas
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(_req, "urlopen", fake)
    return fake


@pytest.fixture(scope="session")
def service_key():
    """(PEM privada, clave pública) de una cuenta de servicio efímera."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return pem, private_key.public_key()


@pytest.fixture
def sheets_env(monkeypatch, service_key):
    """Credenciales completas; la PEM va con '\\n' escapados como en producción."""
    pem, _ = service_key
    monkeypatch.setenv("GOOGLE_SHEETS_CLIENT_EMAIL", SERVICE_EMAIL)
    monkeypatch.setenv("GOOGLE_SHEETS_PRIVATE_KEY", pem.replace("\n", "\\n"))
    monkeypatch.setenv("GOOGLE_SHEETS_SHEET_ID", SHEET_ID)
    monkeypatch.setenv("GOOGLE_TOKEN_URL", TOKEN_URL)
    monkeypatch.setenv("GOOGLE_SHEETS_API_URL", SHEETS_API_URL)


@pytest.fixture(scope="session")
def client():
    from app.main import app
    with TestClient(app) as c:
        yield c
