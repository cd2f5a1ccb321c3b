import json
from typing import Annotated

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    # Cuenta de servicio de Google
    google_client_email: str | None = Field(None, alias="GOOGLE_SHEETS_CLIENT_EMAIL")
    google_private_key: str | None = Field(None, alias="GOOGLE_SHEETS_PRIVATE_KEY")

    # Hoja de destino
    sheet_id: str | None = Field(None, alias="GOOGLE_SHEETS_SHEET_ID")
    sheet_tab: str = Field("Sheet1", alias="GOOGLE_SHEETS_TAB_NAME")

    # Endpoints de Google (sobrescribibles en pruebas)
    token_url: str = Field("https://oauth2.googleapis.com/token", alias="GOOGLE_TOKEN_URL")
    sheets_api_url: str = Field("https://sheets.googleapis.com/v4", alias="GOOGLE_SHEETS_API_URL")
    http_timeout: float = Field(10.0, alias="HTTP_TIMEOUT")

    # Token estático opcional para /api/subscribe
    subscribe_token: str | None = Field(None, alias="SUBSCRIBE_TOKEN")

    # "https://a.com,https://b.com" o un array JSON
    cors_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,  # VAR="" cuenta como no definida
    )

    @field_validator("google_private_key")
    @classmethod
    def _unescape_newlines(cls, v: str | None) -> str | None:
        # En variables de entorno la PEM suele venir con "\n" literales
        if v is None:
            return None
        return v.replace("\\n", "\n")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [o.strip() for o in v.split(",") if o.strip()]
        return v


class ClientSettings(BaseSettings):
    # "/api/subscribe" (mismo origen) o una URL completa (externa)
    email_endpoint: str = Field("/api/subscribe", alias="EMAIL_ENDPOINT")
    email_token: str | None = Field(None, alias="EMAIL_TOKEN")
    app_origin: str = Field("http://127.0.0.1:8000", alias="APP_ORIGIN")

    seen_list_path: str = Field(".waitlist/storage.json", alias="SEEN_LIST_PATH")
    launch_at: str = Field("2026-05-12T00:00:00", alias="LAUNCH_AT")
    http_timeout: float = Field(10.0, alias="HTTP_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,  # VAR="" cuenta como no definida
    )


def get_settings() -> Settings:
    """Lee la configuración en cada petición (sin estado compartido)."""
    return Settings()


settings = Settings()
