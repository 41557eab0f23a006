"""Repositório do histórico de tickets — append-only, mais recente primeiro."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.systems.tickets.entity import HistoryEvent
from app.domain.systems.tickets.repository import IHistoryRepository
from app.infrastructure.database.models import TicketHistoryModel
from app.infrastructure.systems.users.repository import to_summary


class HistoryRepository(IHistoryRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: TicketHistoryModel, actor=None) -> HistoryEvent:
        return HistoryEvent(
            id=model.id,
            ticket_id=model.ticket_id,
            user_id=model.user_id,
            action=model.action,
            details=model.details or "",
            created_at=model.created_at,
            actor=actor,
        )

    async def append(self, event: HistoryEvent) -> HistoryEvent:
        event.validate()
        model = TicketHistoryModel(
            ticket_id=event.ticket_id,
            user_id=event.user_id,
            action=event.action,
            details=event.details,
            created_at=event.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def list_by_ticket(self, ticket_id: int) -> AsyncIterator[HistoryEvent]:
        stmt = (
            select(TicketHistoryModel)
            .where(TicketHistoryModel.ticket_id == ticket_id)
            .options(selectinload(TicketHistoryModel.user))
            .order_by(TicketHistoryModel.created_at.desc(), TicketHistoryModel.id.desc())
        )
        result = await self._session.execute(stmt)
        for model in result.scalars():
            yield self._to_entity(model, to_summary(model.user))
