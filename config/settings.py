from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # CPSMS gateway
    CPSMS_SERVICE_URL: str = Field(default="https://www.cpsms.dk/sms/")
    CPSMS_USERNAME: str = Field(default="")
    CPSMS_PASSWORD: str = Field(default="")
    CPSMS_FROM: str = Field(default="")  # sender label shown to the recipient, max 11 chars
    CPSMS_TIMEOUT_SECONDS: float = Field(default=20.0)

    # Ops
    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
