"""Use Case do dashboard — contadores e tickets recentes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from app.domain.events.base import utcnow
from app.domain.systems.tickets.repository import ITicketRepository
from app.domain.systems.users.entity import User
from app.domain.systems.users.authorization_service import AuthorizationService
from app.application.dtos.settings_dtos import DashboardStatsResult
from app.application.systems.tickets.use_cases import to_ticket_result


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class GetDashboardStatsUseCase:
    def __init__(self, repo: ITicketRepository, recent_limit: int = 5) -> None:
        self._repo = repo
        self._recent_limit = recent_limit

    async def execute(self, actor: User, now: Optional[datetime] = None) -> DashboardStatsResult:
        AuthorizationService.ensure_can_manage_tickets(actor)
        stats = await self._repo.stats(since=start_of_day(now), recent_limit=self._recent_limit)
        return DashboardStatsResult(
            total_tickets=stats.total,
            open_tickets=stats.open,
            resolved_today=stats.resolved_today,
            critical_open=stats.critical_open,
            total_users=stats.total_users,
            recent_tickets=[to_ticket_result(t) for t in stats.recent],
        )
