from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sgi_fv.backend.errors import BackendError
from sgi_fv.core.deps import get_settings, require_session
from sgi_fv.core.settings import AppSettings
from sgi_fv.schemas.dashboard import DashboardRead, NavigationLink
from sgi_fv.schemas.process import ProcessRead, ProcessStats
from sgi_fv.services.processes import ProcessService
from sgi_fv.services.session import SessionContextProvider
from sgi_fv.services import views
from sgi_fv.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


# PUBLIC_INTERFACE
@router.get(
    "/navegacao",
    response_model=List[NavigationLink],
    summary="Navigation",
    description="Named views available in the sidebar.",
)
async def navigation(provider: SessionContextProvider = Depends(require_session)) -> List[NavigationLink]:
    """Return the fixed set of views."""
    return views.navigation_links()


# PUBLIC_INTERFACE
@router.get(
    "/dashboard",
    response_model=DashboardRead,
    summary="Dashboard",
    description="Greeting, process statistics, recent processes and the member-based overview.",
)
async def get_dashboard(
    selected: Optional[str] = Query(None, description="Id of the highlighted process row"),
    provider: SessionContextProvider = Depends(require_session),
    settings: AppSettings = Depends(get_settings),
) -> DashboardRead:
    """
    Build the dashboard.

    Load failures are logged and leave the affected section empty.
    """
    context = provider.user_context
    stats = ProcessStats()
    recent: List[ProcessRead] = []

    if context is not None and context.org_id:
        service = ProcessService(provider.client)
        try:
            stats, processes = await asyncio.gather(
                service.get_process_stats(context.org_id),
                service.list_processes(context.org_id),
            )
            recent = processes[: views.RECENT_PROCESSES]
        except BackendError as error:
            logger.error("Error loading dashboard data: %r", error)

    dashboard = DashboardRead(
        greeting=views.greeting(context),
        org_name=context.org_name if context else "Organização",
        is_admin=provider.is_admin,
        stats=stats,
        cards=views.stat_cards(stats),
        recent_processes=recent,
    )

    try:
        workspace = await WorkspaceService(provider, settings.ADMIN_EMAILS).load()
    except BackendError as error:
        logger.error("Error loading members for dashboard: %r", error)
        return dashboard

    scoped = workspace.scoped_members
    rows = views.process_rows(scoped)
    user_rows = scoped[: views.DASHBOARD_USER_ROWS]
    distribution = views.status_distribution(rows)
    return dashboard.model_copy(
        update={
            "user_stats": views.compute_user_stats(scoped, settings.ADMIN_EMAILS),
            "user_rows": [views.to_member_read(m, settings.ADMIN_EMAILS) for m in user_rows],
            "distribution": distribution,
            "pie": views.pie_slices(distribution),
            "process_rows": rows[: views.RECENT_PROCESSES],
            "selected_process": views.select_row(rows, selected),
        }
    )
