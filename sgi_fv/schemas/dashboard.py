from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .member import MemberRead
from .process import ProcessRead, ProcessStats, ProcessStatus


class StatCard(BaseModel):
    label: str
    value: int


class UserStats(BaseModel):
    """Figures computed over the members visible to the caller."""
    active_users: int = 0
    active_processes: int = 0
    completed_processes: int = 0
    total_value: float = 0.0


class StatusDistribution(BaseModel):
    """Share of each status in percent (half-up rounded)."""
    triagem: int = 0
    analise: int = 0
    concluido: int = 0
    pendente: int = 0


class PieSlices(BaseModel):
    """Cumulative percentages used to draw a pie chart."""
    triagem: int = 0
    analise: int = 0
    concluido: int = 0


class DashboardProcessRow(BaseModel):
    id: str
    user_name: str
    protocol: str = ""
    status: ProcessStatus
    value: float


class DashboardRead(BaseModel):
    """Dashboard view: greeting, process stats and recent work."""
    greeting: str
    org_name: str
    is_admin: bool = False
    stats: ProcessStats
    cards: List[StatCard] = Field(default_factory=list)
    recent_processes: List[ProcessRead] = Field(default_factory=list)
    user_stats: UserStats = Field(default_factory=UserStats)
    user_rows: List[MemberRead] = Field(default_factory=list, description="First members in scope")
    distribution: StatusDistribution = Field(default_factory=StatusDistribution)
    pie: PieSlices = Field(default_factory=PieSlices)
    process_rows: List[DashboardProcessRow] = Field(default_factory=list)
    selected_process: Optional[DashboardProcessRow] = None


class FinancialRow(BaseModel):
    id: str
    user_name: str
    organization_id: str
    organization_name: str
    protocol: str = ""
    status: ProcessStatus
    total: float
    paid: float
    pending: float


class FinancialSummary(BaseModel):
    """Financial view over the filtered rows."""
    rows: List[FinancialRow] = Field(default_factory=list)
    total: float = 0.0
    paid: float = 0.0
    pending: float = 0.0
    paid_percent: int = 0
    pending_percent: int = 0
    selected: Optional[FinancialRow] = None
    organization_filter: str = "all"
    user_filter: str = "all"


class NavigationLink(BaseModel):
    to: str
    label: str
    view: str
