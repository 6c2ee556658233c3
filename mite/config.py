from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict

class MiteSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    # Account
    MITE_URL: str = ""
    MITE_API_KEY: str | None = None  # do not commit

    # Basic auth, only used when no api key is configured
    MITE_USERNAME: str | None = None
    MITE_PASSWORD: str | None = None

    # Transport
    MITE_USER_AGENT: str = "mite-client/0.9"
    MITE_VERIFY_SSL: bool = True
    MITE_TIMEOUT: float = 20.0

    # Responses
    MITE_EXPECTED_CONTENT_TYPE: str = "application/json"

    # Observability
    LOG_JSON: bool = False

settings = MiteSettings()
