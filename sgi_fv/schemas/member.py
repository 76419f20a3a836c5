from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .auth import UserRole
from .common import PageInfo
from .process import ProcessStatus


class AccessLevel(str, Enum):
    """Coarse permission tier, distinct from the backend's own role field."""
    GENERAL_ADMIN = "ADMINISTRADOR GERAL"
    SENIOR_USER = "USUÁRIO SÊNIOR"
    PLENO_USER = "USUÁRIO PLENO"
    CLIENT = "CLIENTE"

    @property
    def description(self) -> str:
        return ACCESS_LEVEL_DESCRIPTIONS[self]


ACCESS_LEVEL_DESCRIPTIONS = {
    AccessLevel.GENERAL_ADMIN: "Visão total da plataforma, financeiro e gestão de perfis.",
    AccessLevel.SENIOR_USER: "Diretoria/Gerência da organização: agenda, equipe e distribuição autorizada.",
    AccessLevel.PLENO_USER: "Execução técnica: atua nos clientes/processos atribuídos.",
    AccessLevel.CLIENT: "Acesso restrito ao próprio processo e documentos.",
}


class Hierarchy(str, Enum):
    FULL = "Alteração e Edição"
    STATUS_ONLY = "Somente Alteração"
    NOTES_ONLY = "Somente Anotações"


class ServiceUnit(str, Enum):
    JURIDICO = "JURÍDICO / ADVOCACIA"
    ADMINISTRATIVO = "ADMINISTRATIVO"
    TECNOLOGICO = "TECNOLÓGICO / AI"


# PUBLIC_INTERFACE
def map_access_level_to_role(access_level: AccessLevel) -> UserRole:
    """Clients stay restricted; every staff level is administrative."""
    if access_level is AccessLevel.CLIENT:
        return UserRole.CLIENT
    return UserRole.ADMIN


class Member(BaseModel):
    """User/profile row with its process-tracking fields."""
    id: str = Field(..., description="Profile id")
    name: str = Field("", description="Full name")
    email: str = Field("")
    role: UserRole = Field(UserRole.CLIENT)
    access_level: Optional[AccessLevel] = Field(None)
    hierarchy: Optional[Hierarchy] = Field(None)
    document_id: str = Field("")
    tax_id: str = Field("")
    address: str = Field("")
    marital_status: str = Field("")
    country: str = Field("")
    phone: str = Field("")
    unit: ServiceUnit = Field(ServiceUnit.JURIDICO)
    status: ProcessStatus = Field(ProcessStatus.CADASTRO)
    protocol: str = Field("")
    process_number: Optional[str] = Field(None)
    registration_date: Optional[datetime] = Field(None)
    last_update: Optional[datetime] = Field(None)
    deadline: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    service_manager: Optional[str] = Field(None)
    organization_id: Optional[str] = Field(None)
    organization_name: Optional[str] = Field(None)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProcessStatus.parse(v) if v else ProcessStatus.CADASTRO


class MemberRead(Member):
    """Member plus the access level resolved for display."""
    effective_access_level: AccessLevel = Field(...)


class MemberUpsert(BaseModel):
    """Create (or update, when the e-mail exists) a member."""
    name: str = Field(..., min_length=1)
    email: EmailStr = Field(...)
    access_level: AccessLevel = Field(AccessLevel.SENIOR_USER)
    hierarchy: Hierarchy = Field(Hierarchy.FULL)


class MemberUpdate(BaseModel):
    """Edit name, access level and hierarchy of a member."""
    name: Optional[str] = Field(None, min_length=1)
    access_level: Optional[AccessLevel] = Field(None)
    hierarchy: Optional[Hierarchy] = Field(None)


class TrackingUpdate(BaseModel):
    """Process-tracking fields edited from the clients view."""
    status: ProcessStatus = Field(...)
    deadline: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    service_manager: Optional[str] = Field(None)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProcessStatus.parse(v)


class MemberPage(BaseModel):
    items: List[MemberRead] = Field(default_factory=list)
    page: PageInfo
    can_manage_access: bool = Field(False)
