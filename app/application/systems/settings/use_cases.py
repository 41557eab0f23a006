"""Use Cases da configuração do portal."""

from __future__ import annotations

from typing import Sequence

from app.domain.systems.settings.entity import PortalSettings
from app.domain.systems.settings.repository import ISettingsRepository
from app.domain.systems.users.entity import User
from app.domain.systems.users.authorization_service import AuthorizationService
from app.application.dtos.settings_dtos import SettingsResult, UpdateSettingsCommand
from app.application.shared.unit_of_work import UnitOfWork


def _to_result(s: PortalSettings) -> SettingsResult:
    return SettingsResult(
        portal_name=s.portal_name,
        company_logo=s.company_logo,
        primary_color=s.primary_color,
        enable_notifications=s.enable_notifications,
        ticket_categories=list(s.ticket_categories),
        asset_types=list(s.asset_types),
        auto_assignment=s.auto_assignment,
        sla_hours=s.sla_hours,
        updated_by=s.updated_by,
        updated_at=s.updated_at.isoformat() if s.updated_at else None,
    )


class GetSettingsUseCase:
    """Linha salva ou, se nunca salva, os valores padrão."""

    def __init__(self, repo: ISettingsRepository, default_categories: Sequence[str] = ()) -> None:
        self._repo = repo
        self._default_categories = list(default_categories)

    async def execute(self) -> SettingsResult:
        current = await self._repo.get()
        if current is None:
            current = PortalSettings(ticket_categories=list(self._default_categories))
        return _to_result(current)


class UpdateSettingsUseCase:
    def __init__(self, repo: ISettingsRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def execute(self, cmd: UpdateSettingsCommand, actor: User) -> SettingsResult:
        AuthorizationService.ensure_can_manage_settings(actor)
        settings = PortalSettings(
            portal_name=cmd.portal_name or "",
            company_logo=cmd.company_logo or "",
            primary_color=cmd.primary_color,
            enable_notifications=cmd.enable_notifications,
            ticket_categories=list(cmd.ticket_categories),
            asset_types=list(cmd.asset_types),
            auto_assignment=cmd.auto_assignment,
            sla_hours=cmd.sla_hours,
            updated_by=actor.id,
        )
        settings.validate()
        saved = await self._repo.upsert(settings)
        await self._uow.commit()
        return _to_result(saved)
