"""Repositório da configuração do portal — upsert da linha única."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.events.base import utcnow
from app.domain.systems.settings.entity import SETTINGS_ROW_ID, PortalSettings
from app.domain.systems.settings.repository import ISettingsRepository
from app.infrastructure.database.models import PortalSettingsModel

_FIELDS = (
    "portal_name",
    "company_logo",
    "primary_color",
    "enable_notifications",
    "ticket_categories",
    "asset_types",
    "auto_assignment",
    "sla_hours",
    "updated_by",
)


class SettingsRepository(ISettingsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: PortalSettingsModel) -> PortalSettings:
        return PortalSettings(
            portal_name=model.portal_name,
            company_logo=model.company_logo or "",
            primary_color=model.primary_color,
            enable_notifications=bool(model.enable_notifications),
            ticket_categories=list(model.ticket_categories or []),
            asset_types=list(model.asset_types or []),
            auto_assignment=bool(model.auto_assignment),
            sla_hours=model.sla_hours,
            updated_by=model.updated_by,
            updated_at=model.updated_at,
        )

    async def get(self) -> Optional[PortalSettings]:
        model = await self._session.get(PortalSettingsModel, SETTINGS_ROW_ID)
        return self._to_entity(model) if model else None

    async def upsert(self, settings: PortalSettings) -> PortalSettings:
        model = await self._session.get(PortalSettingsModel, SETTINGS_ROW_ID)
        if model is None:
            model = PortalSettingsModel(id=SETTINGS_ROW_ID)
            self._session.add(model)
        for name in _FIELDS:
            value = getattr(settings, name)
            setattr(model, name, list(value) if isinstance(value, list) else value)
        model.updated_at = utcnow()
        await self._session.flush()
        return self._to_entity(model)
