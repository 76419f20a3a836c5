from __future__ import annotations

import unicodedata
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import PageInfo


class ProcessStatus(str, Enum):
    """Intake pipeline: registration -> triage -> analysis -> concluded."""
    CADASTRO = "cadastro"
    TRIAGEM = "triagem"
    ANALISE = "analise"
    CONCLUIDO = "concluido"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def legacy_label(self) -> str:
        """Upper-case label used by profile process-tracking fields."""
        return _LEGACY_STATUS_LABELS[self]

    @classmethod
    def parse(cls, value: object) -> "ProcessStatus":
        """Accept codes ('analise'), labels ('Análise') and legacy labels ('ANÁLISE')."""
        if isinstance(value, cls):
            return value
        text = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode()
        return cls(text.strip().lower())


_STATUS_LABELS = {
    ProcessStatus.CADASTRO: "Cadastro",
    ProcessStatus.TRIAGEM: "Triagem",
    ProcessStatus.ANALISE: "Análise",
    ProcessStatus.CONCLUIDO: "Concluído",
}

_LEGACY_STATUS_LABELS = {
    ProcessStatus.CADASTRO: "CADASTRO",
    ProcessStatus.TRIAGEM: "TRIAGEM",
    ProcessStatus.ANALISE: "ANÁLISE",
    ProcessStatus.CONCLUIDO: "CONCLUÍDO",
}


class ProcessEventType(str, Enum):
    REGISTRO = "registro"
    STATUS_CHANGE = "status_change"
    OBSERVACAO = "observacao"
    DOCUMENTO = "documento"
    ATRIBUICAO = "atribuicao"


class ProcessRead(BaseModel):
    """Process read model."""
    id: str = Field(..., description="Process id")
    org_id: str = Field(..., description="Owning organization")
    titulo: str = Field(..., description="Title")
    protocolo: Optional[str] = Field(None)
    status: ProcessStatus = Field(ProcessStatus.CADASTRO)
    cliente_nome: Optional[str] = Field(None)
    cliente_documento: Optional[str] = Field(None)
    cliente_contato: Optional[str] = Field(None)
    responsavel_user_id: Optional[str] = Field(None)
    created_at: Optional[datetime] = Field(None)
    updated_at: Optional[datetime] = Field(None)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProcessStatus.parse(v)


class ProcessEventRead(BaseModel):
    """Append-only process log entry."""
    id: str = Field(...)
    org_id: str = Field(...)
    process_id: str = Field(...)
    tipo: ProcessEventType = Field(...)
    mensagem: str = Field(...)
    created_by: Optional[str] = Field(None)
    created_at: Optional[datetime] = Field(None)


class ProcessCreate(BaseModel):
    """Create process payload."""
    titulo: str = Field(..., min_length=1, description="Title")
    cliente_nome: Optional[str] = Field(None)
    cliente_documento: Optional[str] = Field(None)
    cliente_contato: Optional[str] = Field(None)
    responsavel_user_id: Optional[str] = Field(None)


class ProcessUpdate(BaseModel):
    """Editable process fields."""
    titulo: Optional[str] = Field(None, min_length=1)
    cliente_nome: Optional[str] = Field(None)
    cliente_documento: Optional[str] = Field(None)
    cliente_contato: Optional[str] = Field(None)
    responsavel_user_id: Optional[str] = Field(None)


class ProcessStatusUpdate(BaseModel):
    status: ProcessStatus = Field(...)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return ProcessStatus.parse(v)


class ProcessEventCreate(BaseModel):
    tipo: ProcessEventType = Field(ProcessEventType.OBSERVACAO)
    mensagem: str = Field(..., min_length=1)


class ProcessStats(BaseModel):
    """Process counts per status."""
    total: int = 0
    cadastro: int = 0
    triagem: int = 0
    analise: int = 0
    concluido: int = 0

    @property
    def in_progress(self) -> int:
        return self.cadastro + self.triagem + self.analise


class ProcessDetail(BaseModel):
    process: ProcessRead
    events: List[ProcessEventRead] = Field(default_factory=list)


class ProcessPage(BaseModel):
    items: List[ProcessRead] = Field(default_factory=list)
    page: PageInfo
