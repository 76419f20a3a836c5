from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from sgi_fv.core.deps import get_settings, require_admin
from sgi_fv.core.settings import AppSettings
from sgi_fv.schemas.dashboard import FinancialSummary
from sgi_fv.services import views
from sgi_fv.services.reports import export_dataframe, financial_dataframe
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services.workspace import WorkspaceService

router = APIRouter(prefix="/financeiro", tags=["Financial"])


async def _summary(
    provider: SessionContextProvider,
    settings: AppSettings,
    organization: str,
    user: str,
    selected: Optional[str],
) -> FinancialSummary:
    workspace = await WorkspaceService(provider, settings.ADMIN_EMAILS).load()
    rows = views.financial_rows(workspace.scoped_members, settings.ADMIN_EMAILS)
    return views.summarize_financial(rows, organization, user, selected)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=FinancialSummary,
    summary="Financial overview",
    description="Estimated totals, paid and pending amounts per staff member, filterable by organization and user.",
)
async def financial_overview(
    organization: str = Query(views.ALL, description="Organization id or 'all'"),
    user: str = Query(views.ALL, description="Member id or 'all'"),
    selected: Optional[str] = Query(None, description="Id of the highlighted row"),
    provider: SessionContextProvider = Depends(require_admin),
    settings: AppSettings = Depends(get_settings),
) -> FinancialSummary:
    return await _summary(provider, settings, organization, user, selected)


# PUBLIC_INTERFACE
@router.get(
    "/export",
    summary="Export financial rows",
    description="Export the filtered financial rows.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def export_financial(
    organization: str = Query(views.ALL, description="Organization id or 'all'"),
    user: str = Query(views.ALL, description="Member id or 'all'"),
    format: str = Query("csv", description="Export format: csv | xlsx | pdf"),
    provider: SessionContextProvider = Depends(require_admin),
    settings: AppSettings = Depends(get_settings),
):
    """Stream the financial report in the requested format."""
    summary = await _summary(provider, settings, organization, user, None)
    return export_dataframe(financial_dataframe(summary.rows), "relatorio_financeiro", format)
