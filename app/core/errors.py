# app/core/errors.py
from __future__ import annotations

GENERIC_STORE_ERROR = "Failed to store email."


class WaitlistError(Exception):
    """
    Error base. `public_message` es lo único que ve el cliente;
    el detalle (str(exc)) solo va a los logs.
    """
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, detail: str | None = None, *, status_code: int | None = None,
                 public_message: str | None = None):
        super().__init__(detail or public_message or self.public_message)
        if status_code is not None:
            self.status_code = status_code
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(WaitlistError):
    """Faltan credenciales o el id de la hoja."""
    status_code = 500
    public_message = "Service is not configured."


class ValidationError(WaitlistError):
    status_code = 400
    public_message = "Invalid request."


class UpstreamError(WaitlistError):
    status_code = 500
    public_message = GENERIC_STORE_ERROR


class TokenExchangeError(UpstreamError):
    pass


class AppendError(UpstreamError):
    pass


class StoreFailedError(WaitlistError):
    status_code = 500
    public_message = GENERIC_STORE_ERROR
