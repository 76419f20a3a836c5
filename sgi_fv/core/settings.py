from __future__ import annotations

import json
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_list(v) -> List[str]:
    """Accept JSON arrays (raw or decoded) and comma-separated strings."""
    if v is None:
        return []
    if isinstance(v, str):
        if v.strip().startswith("["):
            return _split_list(json.loads(v))
        return [p.strip() for p in v.split(",") if p.strip()]
    if isinstance(v, (list, tuple)):
        return [str(p).strip() for p in v if str(p).strip()]
    return []


class AppSettings(BaseSettings):
    """
    Application-level settings for the SGI FV API.

    This is separate from sgi_fv.backend.config.BackendSettings, which focuses on
    the hosted data service (URL, keys, organizations table discovery).
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="SGI FV API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Sistema de Gestão Integrada - Formando Valores. "
            "Case-management views over a hosted backend with row-level security."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Backend-issued access tokens
    SUPABASE_JWT_SECRET: Optional[str] = Field(
        default=None, description="Secret used by the auth service to sign access tokens."
    )
    SUPABASE_JWT_AUDIENCE: Optional[str] = Field(default="authenticated")
    JWT_ALGORITHM: str = Field(default="HS256")

    # Access management
    ADMIN_EMAILS: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Bootstrap general administrators (e-mails).",
    )
    SERVICE_MANAGERS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Listing defaults
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1)
    PAGE_SIZE_OPTIONS: List[int] = Field(default_factory=lambda: [5, 10, 20, 50])

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        return _split_list(v) or ["*"]

    @field_validator("ADMIN_EMAILS", mode="before")
    @classmethod
    def _parse_admin_emails(cls, v):
        return [email.lower() for email in _split_list(v)]

    @field_validator("SERVICE_MANAGERS", mode="before")
    @classmethod
    def _parse_service_managers(cls, v):
        return _split_list(v)


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time.
    """
    return AppSettings()
