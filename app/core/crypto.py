# app/core/crypto.py
from __future__ import annotations

import time

import jwt
from cryptography.hazmat.primitives import serialization

from app.core.errors import ConfigurationError

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
TOKEN_AUDIENCE = "https://oauth2.googleapis.com/token"
ASSERTION_TTL = 3600


def _load_private_key(pem: str):
    try:
        return serialization.load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Service account private key is not a valid PEM: {e}") from e


def build_assertion(client_email: str | None, private_key: str | None, now: int | None = None) -> str:
    """
    Construye el JWT (RS256) que la cuenta de servicio presenta en el grant jwt-bearer:
    header {"alg": "RS256", "typ": "JWT"} y claims iss/scope/aud/iat/exp (exp = iat + 3600).
    """
    if not client_email or not private_key:
        raise ConfigurationError("Google Sheets credentials are not configured.")

    if now is None:
        now = int(time.time())

    claims = {
        "iss": client_email,
        "scope": SHEETS_SCOPE,
        "aud": TOKEN_AUDIENCE,
        "iat": now,
        "exp": now + ASSERTION_TTL,
    }
    key = _load_private_key(private_key)
    return jwt.encode(claims, key, algorithm="RS256", headers={"typ": "JWT"})
