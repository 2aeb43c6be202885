"""Application configuration for the token issuer."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..services.rtc import IssuerCredentials


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ])

    agora_app_id: str = Field(default="")
    agora_app_certificate: SecretStr = Field(default=SecretStr(""))
    token_ttl_seconds: int = Field(default=24 * 60 * 60, ge=1)

    @field_validator("cors_allow_origins", "cors_allow_headers", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Allow comma-separated env values for list settings."""

        if isinstance(value, str) and not value.lstrip().startswith("["):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def issuer_credentials(self) -> IssuerCredentials | None:
        """Return signing credentials, or None when the deployment lacks them.

        Rejecting missing credentials is left to the issuer so that caller
        input is validated first.
        """

        app_id = self.agora_app_id.strip()
        certificate = self.agora_app_certificate.get_secret_value().strip()
        if not app_id or not certificate:
            return None
        return IssuerCredentials(app_id=app_id, app_certificate=certificate)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
