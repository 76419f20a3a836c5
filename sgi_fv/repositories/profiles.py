from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sgi_fv.schemas.auth import UserRole, map_role
from sgi_fv.schemas.member import Member

from .base import BaseRepository

PROFILES_TABLE = "profiles"

# Member field -> profiles column
_COLUMNS = {
    "id": "id",
    "name": "nome_completo",
    "email": "email",
    "role": "role",
    "access_level": "nivel_acesso",
    "hierarchy": "hierarquia",
    "document_id": "documento_identidade",
    "tax_id": "nif_cpf",
    "address": "endereco",
    "marital_status": "estado_civil",
    "country": "pais",
    "phone": "phone",
    "unit": "unidade",
    "status": "status",
    "protocol": "protocolo",
    "process_number": "numero_processo",
    "registration_date": "created_at",
    "last_update": "updated_at",
    "deadline": "prazo",
    "notes": "observacoes",
    "service_manager": "gestor_servico",
    "organization_id": "org_id",
    "organization_name": "org_name",
}


def row_to_member(row: Dict[str, Any]) -> Member:
    """Build a Member from a profiles row, ignoring null columns."""
    values = {
        attr: row[column]
        for attr, column in _COLUMNS.items()
        if row.get(column) is not None
    }
    values["id"] = str(row["id"])
    if "role" in values:
        raw_role = str(values["role"]).lower()
        values["role"] = UserRole.MANAGER if raw_role == "manager" else map_role(raw_role)
    return Member(**values)


def member_values_to_row(values: Dict[str, Any]) -> Dict[str, Any]:
    """Translate Member field names into profiles columns."""
    row: Dict[str, Any] = {}
    for attr, value in values.items():
        column = _COLUMNS.get(attr)
        if column is None or column in ("id", "created_at"):
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        row[column] = value
    return row


class ProfileRepository(BaseRepository):
    """Profiles visible to the caller (row-level security decides which)."""

    async def list_members(self) -> List[Member]:
        query = self.table(PROFILES_TABLE).select("*").order("nome_completo")
        return [row_to_member(row) for row in await self.run(query) if row.get("id") is not None]

    async def get_member(self, member_id: str) -> Optional[Member]:
        row = await self.first(self.table(PROFILES_TABLE).select("*").eq("id", member_id).limit(1))
        return row_to_member(row) if row else None

    async def get_member_by_email(self, email: str) -> Optional[Member]:
        row = await self.first(self.table(PROFILES_TABLE).select("*").eq("email", email).limit(1))
        return row_to_member(row) if row else None

    async def create_member(self, values: Dict[str, Any]) -> Optional[Member]:
        row = await self.first(self.table(PROFILES_TABLE).insert(member_values_to_row(values)))
        return row_to_member(row) if row else None

    async def update_member(self, member_id: str, values: Dict[str, Any]) -> Optional[Member]:
        query = (
            self.table(PROFILES_TABLE)
            .update(member_values_to_row(values))
            .eq("id", member_id)
        )
        row = await self.first(query)
        return row_to_member(row) if row else None

    async def delete_member(self, member_id: str) -> bool:
        rows = await self.run(self.table(PROFILES_TABLE).delete().eq("id", member_id))
        return bool(rows)
