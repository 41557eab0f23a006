"""Endpoint do dashboard — /api/v1/dashboard"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.domain.systems.users.entity import User
from app.infrastructure.config import get_settings
from app.infrastructure.systems.tickets.repository import TicketRepository
from app.application.systems.dashboard.use_cases import GetDashboardStatsUseCase
from app.presentation.api.v1.schemas import DashboardStatsOut
from app.presentation.api.v1.deps import get_current_active_user, get_ticket_repo

router = APIRouter()


@router.get(
    "/stats",
    response_model=DashboardStatsOut,
    summary="Contadores e tickets recentes (admin/support)",
    description="`resolved_today` conta tickets resolvidos com `updated_at` desde 00:00 UTC.",
)
async def dashboard_stats(
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    uc = GetDashboardStatsUseCase(repo, recent_limit=get_settings().DASHBOARD_RECENT_TICKETS)
    return DashboardStatsOut.model_validate(await uc.execute(actor=current_user))
