"""
Presentational aggregates for the management views.

Everything here is a pure function over rows already fetched (and already
filtered by row-level security). Nothing is cached or persisted.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from sgi_fv.core.text import matches_term
from sgi_fv.repositories.organizations import find_central_organization
from sgi_fv.schemas.auth import UserContext, UserRole
from sgi_fv.schemas.common import PageInfo
from sgi_fv.schemas.dashboard import (
    DashboardProcessRow,
    FinancialRow,
    FinancialSummary,
    NavigationLink,
    PieSlices,
    StatCard,
    StatusDistribution,
    UserStats,
)
from sgi_fv.schemas.member import AccessLevel, Member, MemberRead
from sgi_fv.schemas.organization import Organization, OrganizationInsight
from sgi_fv.schemas.process import ProcessStats, ProcessStatus

T = TypeVar("T")

BASE_VALUE_BY_STATUS = {
    ProcessStatus.CADASTRO: 1800.0,
    ProcessStatus.TRIAGEM: 2600.0,
    ProcessStatus.ANALISE: 3400.0,
    ProcessStatus.CONCLUIDO: 5200.0,
}
DEFAULT_BASE_VALUE = 1800.0

NO_ORGANIZATION_ID = "sem-org"
NO_ORGANIZATION_NAME = "Não informado"
CENTRAL_ORGANIZATION_NAME = "organização padrão"

DASHBOARD_USER_ROWS = 6
RECENT_PROCESSES = 5
ALL = "all"


def round_half_up(value: float) -> int:
    """Round .5 up (towards +inf), as percentages are displayed."""
    return int(math.floor(value + 0.5))


# PUBLIC_INTERFACE
def get_user_access_level(member: Member, admin_emails: Iterable[str] = ()) -> AccessLevel:
    """
    Effective access level of a member.

    An explicit level wins; otherwise restricted members are clients, bootstrap
    administrator e-mails are general administrators and everyone else is a
    senior user.
    """
    if member.access_level is not None:
        return member.access_level
    if member.role is UserRole.CLIENT:
        return AccessLevel.CLIENT
    email = (member.email or "").lower()
    if email and email in {e.lower() for e in admin_emails}:
        return AccessLevel.GENERAL_ADMIN
    return AccessLevel.SENIOR_USER


# PUBLIC_INTERFACE
def is_central_admin(viewer: Member, organizations: Sequence[Organization]) -> bool:
    """An administrator belonging to the central organization."""
    if viewer.role is not UserRole.ADMIN:
        return False
    central = find_central_organization(list(organizations))
    if viewer.organization_id and central is not None and viewer.organization_id == central.id:
        return True
    return (viewer.organization_name or "").lower() == CENTRAL_ORGANIZATION_NAME


# PUBLIC_INTERFACE
def scope_members(
    members: Sequence[Member], viewer: Member, organizations: Sequence[Organization]
) -> List[Member]:
    """Central admins see every member; others only their organization (no org: everyone)."""
    if is_central_admin(viewer, organizations) or not viewer.organization_id:
        return list(members)
    return [m for m in members if m.organization_id == viewer.organization_id]


def to_member_read(member: Member, admin_emails: Iterable[str] = ()) -> MemberRead:
    return MemberRead(
        **member.model_dump(),
        effective_access_level=get_user_access_level(member, admin_emails),
    )


def management_members(
    members: Sequence[Member], viewer: Member, organizations: Sequence[Organization]
) -> List[Member]:
    """Members listed in the access-management view."""
    if viewer.role is UserRole.ADMIN:
        return list(members)
    return scope_members(members, viewer, organizations)


def search_members(
    members: Iterable[Member], term: Optional[str], admin_emails: Iterable[str] = ()
) -> List[Member]:
    admin_emails = list(admin_emails)
    return [
        m
        for m in members
        if matches_term(term, m.name, m.email, get_user_access_level(m, admin_emails).value)
    ]


def search_processes(members: Iterable[Member], term: Optional[str]) -> List[Member]:
    return [m for m in members if matches_term(term, m.name, m.protocol, m.email)]


# PUBLIC_INTERFACE
def paginate(
    items: Sequence[T], page: int, page_size: int, noun: str = "usuários"
) -> Tuple[List[T], PageInfo]:
    """Slice a filtered list; the page is clamped to [1, total_pages]."""
    page_size = max(int(page_size), 1)
    total = len(items)
    total_pages = max(math.ceil(total / page_size), 1)
    safe_page = min(max(int(page), 1), total_pages)
    start = (safe_page - 1) * page_size
    end = min(start + page_size, total)

    if total == 0:
        label = f"0 {noun}"
    else:
        label = f"{start + 1} - {end} de {total} {noun}"

    info = PageInfo(
        page=safe_page,
        page_size=page_size,
        total_pages=total_pages,
        total=total,
        start=start,
        end=end,
        label=label,
        has_previous=safe_page > 1,
        has_next=safe_page < total_pages,
    )
    return list(items[start:end]), info


def base_value(status: ProcessStatus) -> float:
    return BASE_VALUE_BY_STATUS.get(status, DEFAULT_BASE_VALUE)


# Dashboard


def process_rows(members: Iterable[Member]) -> List[DashboardProcessRow]:
    return [
        DashboardProcessRow(
            id=m.id,
            user_name=m.name,
            protocol=m.protocol,
            status=m.status,
            value=base_value(m.status),
        )
        for m in members
    ]


def select_row(rows: Sequence[T], selected_id: Optional[str]) -> Optional[T]:
    """The requested row when present, else the first one."""
    if selected_id is not None:
        for row in rows:
            if getattr(row, "id", None) == selected_id:
                return row
    return rows[0] if rows else None


# PUBLIC_INTERFACE
def compute_user_stats(members: Sequence[Member], admin_emails: Iterable[str] = ()) -> UserStats:
    admin_emails = list(admin_emails)
    return UserStats(
        active_users=sum(
            1 for m in members if get_user_access_level(m, admin_emails) is not AccessLevel.CLIENT
        ),
        active_processes=sum(1 for m in members if m.status is not ProcessStatus.CONCLUIDO),
        completed_processes=sum(1 for m in members if m.status is ProcessStatus.CONCLUIDO),
        total_value=sum(base_value(m.status) for m in members),
    )


# PUBLIC_INTERFACE
def status_distribution(rows: Sequence[DashboardProcessRow]) -> StatusDistribution:
    """Percentage of rows per status; the denominator is at least 1."""
    denominator = max(len(rows), 1)

    def share(status: ProcessStatus) -> int:
        count = sum(1 for row in rows if row.status is status)
        return round_half_up(count / denominator * 100)

    return StatusDistribution(
        triagem=share(ProcessStatus.TRIAGEM),
        analise=share(ProcessStatus.ANALISE),
        concluido=share(ProcessStatus.CONCLUIDO),
        pendente=share(ProcessStatus.CADASTRO),
    )


def pie_slices(distribution: StatusDistribution) -> PieSlices:
    """Cumulative boundaries: triagem, then + analise, then + concluido."""
    return PieSlices(
        triagem=distribution.triagem,
        analise=distribution.triagem + distribution.analise,
        concluido=distribution.triagem + distribution.analise + distribution.concluido,
    )


def stat_cards(stats: ProcessStats) -> List[StatCard]:
    return [
        StatCard(label="Total de Processos", value=stats.total),
        StatCard(label="Em Andamento", value=stats.in_progress),
        StatCard(label="Concluídos", value=stats.concluido),
    ]


def greeting(context: Optional[UserContext]) -> str:
    name = context.nome_completo if context and context.nome_completo else "Usuário"
    org_name = context.org_name if context and context.org_name else "Organização"
    return f"Bem-vindo, {name} | {org_name}"


# Financial


# PUBLIC_INTERFACE
def financial_rows(members: Iterable[Member], admin_emails: Iterable[str] = ()) -> List[FinancialRow]:
    """
    Billing estimate per non-client member.

    Paid is the full value when concluded, 60% in analysis and 25% otherwise;
    pending never goes below zero.
    """
    admin_emails = list(admin_emails)
    rows: List[FinancialRow] = []
    for m in members:
        if get_user_access_level(m, admin_emails) is AccessLevel.CLIENT:
            continue
        total = base_value(m.status)
        if m.status is ProcessStatus.CONCLUIDO:
            paid = total
        elif m.status is ProcessStatus.ANALISE:
            paid = total * 0.6
        else:
            paid = total * 0.25
        rows.append(
            FinancialRow(
                id=m.id,
                user_name=m.name,
                organization_id=m.organization_id or NO_ORGANIZATION_ID,
                organization_name=m.organization_name or NO_ORGANIZATION_NAME,
                protocol=m.protocol,
                status=m.status,
                total=total,
                paid=paid,
                pending=max(total - paid, 0.0),
            )
        )
    return rows


# PUBLIC_INTERFACE
def summarize_financial(
    rows: Sequence[FinancialRow],
    organization_filter: str = ALL,
    user_filter: str = ALL,
    selected_id: Optional[str] = None,
) -> FinancialSummary:
    filtered = [
        row
        for row in rows
        if (organization_filter == ALL or row.organization_id == organization_filter)
        and (user_filter == ALL or row.id == user_filter)
    ]
    total = sum(row.total for row in filtered)
    paid = sum(row.paid for row in filtered)
    pending = sum(row.pending for row in filtered)
    paid_percent = round_half_up(paid / total * 100) if total > 0 else 0

    return FinancialSummary(
        rows=filtered,
        total=total,
        paid=paid,
        pending=pending,
        paid_percent=paid_percent,
        pending_percent=max(100 - paid_percent, 0),
        selected=select_row(filtered, selected_id),
        organization_filter=organization_filter,
        user_filter=user_filter,
    )


# Organizations


# PUBLIC_INTERFACE
def organization_insights(
    organizations: Iterable[Organization],
    members: Sequence[Member],
    admin_emails: Iterable[str] = (),
) -> List[OrganizationInsight]:
    """Clients and clients-with-a-process per organization, largest first."""
    admin_emails = list(admin_emails)
    counted = []
    for org in organizations:
        clients = [
            m
            for m in members
            if m.organization_id == org.id
            and get_user_access_level(m, admin_emails) is AccessLevel.CLIENT
        ]
        with_process = sum(1 for m in clients if m.process_number or m.protocol)
        counted.append((org, len(clients), with_process))

    counted.sort(key=lambda item: item[1], reverse=True)
    largest = max([clients for _, clients, _ in counted] + [1])
    return [
        OrganizationInsight(
            id=org.id,
            name=org.name,
            clients_count=clients,
            process_count=with_process,
            bar_percent=round_half_up(clients / largest * 100),
        )
        for org, clients, with_process in counted
    ]


# Navigation

_NAVIGATION = (
    ("/dashboard", "Dashboard", "dashboard"),
    ("/dashboard/processos", "Processos", "processos"),
    ("/dashboard/clientes", "Clientes", "clientes"),
    ("/dashboard/configuracoes", "Configurações", "configuracoes"),
    ("/dashboard/organizacoes", "Organizações", "organizacoes"),
    ("/dashboard/financeiro", "Financeiro", "financeiro"),
)


def navigation_links() -> List[NavigationLink]:
    return [NavigationLink(to=to, label=label, view=view) for to, label, view in _NAVIGATION]
