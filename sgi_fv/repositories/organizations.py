"""
Organizations repository.

The organizations table is not guaranteed to live in a fixed schema nor to use a
fixed name column, so reads and writes probe an ordered list of candidate
schemas (operator-configured, then the default) and candidate name columns.
This is a discovery heuristic for an ambiguous table layout, not a migration
layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from sgi_fv.backend.client import BackendClient
from sgi_fv.backend.config import BackendSettings, get_backend_settings
from sgi_fv.backend.errors import (
    BackendError,
    is_missing_column_error,
    is_permission_denied,
    is_schema_cache_error,
)
from sgi_fv.core.text import first_text, pt_br_sort_key
from sgi_fv.schemas.organization import Organization

from .base import BaseRepository

logger = logging.getLogger(__name__)

NAME_COLUMNS = ("nome", "name", "razao_social")
ACTIVE_COLUMNS = ("active", "ativo")
EXPIRY_COLUMNS = ("subscription_expires_at", "expires_at")

CENTRAL_ORGANIZATION_SLUG = "default"
CENTRAL_ORGANIZATION_NAME = "organização padrão"


# PUBLIC_INTERFACE
def to_organization(row: Mapping[str, Any]) -> Optional[Organization]:
    """
    Normalize a raw row into an Organization.

    Rows without an id yield None. The name is the first non-blank value among
    the candidate name columns, falling back to "Organização {id}".
    """
    id_value = row.get("id")
    if id_value is None:
        return None

    name = first_text(row.get(column) for column in NAME_COLUMNS)
    active = next(
        (row[column] for column in ACTIVE_COLUMNS if isinstance(row.get(column), bool)),
        None,
    )
    slug = row.get("slug")
    return Organization(
        id=str(id_value),
        name=name if name is not None else f"Organização {id_value}",
        slug=slug if isinstance(slug, str) else None,
        active=active,
        created_at=row.get("created_at"),
        subscription_expires_at=next(
            (row[column] for column in EXPIRY_COLUMNS if row.get(column)), None
        ),
    )


# PUBLIC_INTERFACE
def sort_organizations(organizations: List[Organization]) -> List[Organization]:
    """Sort by name using pt-BR aware comparison."""
    return sorted(organizations, key=lambda org: pt_br_sort_key(org.name))


# PUBLIC_INTERFACE
def is_central_organization(organization: Organization) -> bool:
    """The central organization has slug 'default' or the default display name."""
    slug = (organization.slug or "").lower()
    return slug == CENTRAL_ORGANIZATION_SLUG or organization.name.lower() == CENTRAL_ORGANIZATION_NAME


# PUBLIC_INTERFACE
def find_central_organization(organizations: List[Organization]) -> Optional[Organization]:
    return next((org for org in organizations if is_central_organization(org)), None)


@dataclass
class OrganizationListResult:
    organizations: List[Organization] = field(default_factory=list)
    resolved_schema: Optional[str] = None
    error: Optional[BackendError] = None


@dataclass
class OrganizationWriteResult:
    organization: Optional[Organization] = None
    resolved_schema: Optional[str] = None
    error: Optional[BackendError] = None


@dataclass
class OrganizationDeleteResult:
    deleted: bool = False
    resolved_schema: Optional[str] = None
    error: Optional[BackendError] = None


@dataclass
class OrganizationUpdateResult:
    updated: bool = False
    resolved_schema: Optional[str] = None
    error: Optional[BackendError] = None


class OrganizationRepository(BaseRepository):
    """Organizations table access with schema and column discovery."""

    def __init__(self, client: BackendClient, settings: Optional[BackendSettings] = None) -> None:
        super().__init__(client)
        self.settings = settings or get_backend_settings()
        self.table_name = self.settings.SUPABASE_ORG_TABLE
        self.candidate_schemas = self.settings.candidate_schemas

    async def load_organizations(self) -> OrganizationListResult:
        """
        Read organizations from the first candidate schema that answers.

        A schema-cache error (table not visible in that schema) moves on to the
        next candidate; any other error stops the walk and is returned as is.
        Results from different schemas are never merged.
        """
        last_error: Optional[BackendError] = None

        for schema in self.candidate_schemas:
            query = self.table(self.table_name, schema).select("*").limit(self.settings.ORG_LIST_LIMIT)
            try:
                rows = await self.run(query)
            except BackendError as error:
                last_error = error
                if is_schema_cache_error(error):
                    logger.info("Table %s not found in schema %s, trying next", self.table_name, schema)
                    continue
                logger.warning("Could not load organizations from schema %s: %r", schema, error)
                return OrganizationListResult(error=error)

            organizations = [org for org in (to_organization(row) for row in rows) if org is not None]
            return OrganizationListResult(
                organizations=sort_organizations(organizations),
                resolved_schema=schema,
            )

        return OrganizationListResult(error=last_error)

    async def create_organization(self, organization_name: str) -> OrganizationWriteResult:
        """
        Insert an organization, probing schemas x name columns.

        Only a missing-column error advances to the next candidate column.
        Permission denied and every other error return at once so the real cause
        is not masked by further attempts.
        """
        normalized_name = (organization_name or "").strip()
        if not normalized_name:
            return OrganizationWriteResult(
                error=BackendError(message="Nome da organização é obrigatório.")
            )

        last_error: Optional[BackendError] = None

        for schema in self.candidate_schemas:
            for name_column in NAME_COLUMNS:
                query = self.table(self.table_name, schema).insert([{name_column: normalized_name}])
                try:
                    row = await self.first(query)
                except BackendError as error:
                    last_error = error
                    if is_missing_column_error(error):
                        continue
                    if is_permission_denied(error):
                        logger.warning("Organization insert denied by policy in schema %s", schema)
                    return OrganizationWriteResult(resolved_schema=schema, error=error)

                organization = to_organization(row or {})
                if organization is None:
                    return OrganizationWriteResult(
                        resolved_schema=schema,
                        error=BackendError(message="Registro criado, mas sem campo id."),
                    )
                return OrganizationWriteResult(organization=organization, resolved_schema=schema)

        return OrganizationWriteResult(error=last_error)

    async def delete_organization(self, organization_id: str) -> OrganizationDeleteResult:
        """Delete by id in the first schema that has the table."""
        last_error: Optional[BackendError] = None

        for schema in self.candidate_schemas:
            query = self.table(self.table_name, schema).delete().eq("id", organization_id)
            try:
                rows = await self.run(query)
            except BackendError as error:
                last_error = error
                if is_schema_cache_error(error):
                    continue
                return OrganizationDeleteResult(resolved_schema=schema, error=error)
            return OrganizationDeleteResult(deleted=bool(rows), resolved_schema=schema)

        return OrganizationDeleteResult(error=last_error)

    async def update_organization_active_status(
        self, organization_id: str, active: bool
    ) -> OrganizationUpdateResult:
        """Set the active flag, probing the flag column like the name column on insert."""
        last_error: Optional[BackendError] = None

        for schema in self.candidate_schemas:
            for active_column in ACTIVE_COLUMNS:
                query = (
                    self.table(self.table_name, schema)
                    .update({active_column: active})
                    .eq("id", organization_id)
                )
                try:
                    rows = await self.run(query)
                except BackendError as error:
                    last_error = error
                    if is_missing_column_error(error):
                        continue
                    if is_schema_cache_error(error):
                        break
                    return OrganizationUpdateResult(resolved_schema=schema, error=error)
                return OrganizationUpdateResult(updated=bool(rows), resolved_schema=schema)

        return OrganizationUpdateResult(error=last_error)

    def build_error_message(self, error: Optional[BackendError]) -> str:
        return build_organization_error_message(error, self.table_name)


# PUBLIC_INTERFACE
def build_organization_error_message(error: Optional[BackendError], table_name: str = "banco") -> str:
    """Translate an organizations error into a Portuguese message."""
    if error is None:
        return "Não foi possível processar organizações."

    if is_schema_cache_error(error):
        return (
            f"Não foi encontrada a tabela {table_name} no schema esperado. "
            "Configure SUPABASE_ORG_SCHEMA com o schema correto."
        )

    if is_permission_denied(error):
        return (
            "Sem permissão para cadastrar organização. "
            "Ajuste as políticas RLS de INSERT na tabela de organizações."
        )

    if is_missing_column_error(error):
        return (
            "A tabela de organizações foi encontrada, mas a coluna de nome esperada não existe. "
            "Verifique se há uma coluna nome/name."
        )

    return error.message or "Erro inesperado ao processar organizações."
