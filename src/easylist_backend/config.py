from __future__ import annotations

from typing import ClassVar, final

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


@final
class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )
    app_name: str = "EasyList Backend"
    api_prefix: str = "/api/v1"
    version: str = "0.1.0"

    # Environment (ENVIRONMENT): development | production
    environment: str = "development"

    database_url: str = "sqlite:///./dev.db"
    # Deadline applied to every ordered-store operation.
    db_operation_timeout_seconds: float = 3.0

    # Primary env: CORS_ALLOW_ORIGINS; also accept CORS_ORIGINS as alias.
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "CORS_ORIGINS"),
    )

    # Public base URL, used for Location headers and pagination links.
    domain: str = "http://localhost:4000"

    # Pagination
    default_page_size: int = 20

    # Item cover images
    attachments_local_dir: str = ".data/storage"
    attachments_max_size_bytes: int = 5 * 1024 * 1024

    # SMTP (list emails). Empty host disables sending.
    smtp_host: str = ""
    smtp_port: int = 25
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_sender: str = "EasyList <no-reply@easylist.local>"
    smtp_timeout_seconds: float = 5.0
    smtp_starttls: bool = False
    mail_logo_url: str = ""

    log_level: str = "INFO"

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":  # pyright: ignore[reportUnusedFunction]
        if self.environment.strip().lower() != "production":
            return self

        errors: list[str] = []

        cors_v = self.cors_allow_origins.strip()
        if not cors_v or cors_v == "*":
            errors.append("CORS_ALLOW_ORIGINS must be explicit (not '*') in production")

        if self.smtp_host.strip() and not self.smtp_sender.strip():
            errors.append("SMTP_SENDER must be set when SMTP_HOST is configured")

        if self.db_operation_timeout_seconds <= 0:
            errors.append("DB_OPERATION_TIMEOUT_SECONDS must be positive")

        if errors:
            raise ValueError("Invalid production settings: " + "; ".join(errors))
        return self

    def cors_origins_list(self) -> list[str]:
        v = self.cors_allow_origins.strip()
        if not v:
            return []
        if v == "*":
            return ["*"]
        return _split_csv(v)

    def public_url(self, path: str) -> str:
        return self.domain.rstrip("/") + path

    def security_warnings(self) -> list[str]:
        warnings: list[str] = []
        if self.cors_allow_origins.strip() == "*":
            warnings.append("CORS_ALLOW_ORIGINS='*' is permissive")
        if not self.smtp_host.strip():
            warnings.append("SMTP_HOST is empty; list emails will be dropped")
        return warnings


settings = Settings()
