from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """
    Settings for the hosted data service (PostgREST + auth).

    Reads from environment variables (or .env via pydantic-settings):
      - SUPABASE_URL
      - SUPABASE_ANON_KEY
      - SUPABASE_ORG_SCHEMA  (optional schema holding the organizations table)
      - SUPABASE_ORG_TABLE   (organizations table name, default "banco")
    """

    SUPABASE_URL: Optional[str] = Field(default=None, description="Project URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(
        default=None, description="Public (anon) API key; RLS applies to every request."
    )

    SUPABASE_ORG_SCHEMA: Optional[str] = Field(
        default=None, description="Operator-configured schema for the organizations table."
    )
    SUPABASE_ORG_TABLE: str = Field(default="banco", description="Organizations table name")
    SUPABASE_DEFAULT_SCHEMA: str = Field(default="public")
    ORG_LIST_LIMIT: int = Field(default=300, ge=1)

    USER_CONTEXT_VIEW: str = Field(default="v_user_context")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("SUPABASE_ORG_SCHEMA", mode="before")
    @classmethod
    def _strip_schema(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @field_validator("SUPABASE_ORG_TABLE", mode="before")
    @classmethod
    def _strip_table(cls, v):
        if v is None:
            return "banco"
        return str(v).strip() or "banco"

    @property
    def candidate_schemas(self) -> List[str]:
        """
        Ordered, de-duplicated schemas to probe for the organizations table:
        the configured schema first, then the default one.
        """
        schemas: List[str] = []
        for schema in (self.SUPABASE_ORG_SCHEMA, self.SUPABASE_DEFAULT_SCHEMA):
            if schema and schema not in schemas:
                schemas.append(schema)
        return schemas

    def require_connection(self) -> tuple[str, str]:
        """Return (url, key) or raise when the backend is not configured."""
        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY:
            raise ValueError(
                "Backend configuration missing. Ensure SUPABASE_URL and "
                "SUPABASE_ANON_KEY are set in the environment."
            )
        return self.SUPABASE_URL, self.SUPABASE_ANON_KEY


# PUBLIC_INTERFACE
def get_backend_settings() -> BackendSettings:
    """Return a settings object for the backend layer."""
    return BackendSettings()
