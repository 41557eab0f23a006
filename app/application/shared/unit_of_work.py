"""
Unit of Work — fronteira transacional e despacho pós-commit.

Eventos coletados dos aggregates só são despachados depois de um commit
bem-sucedido; um rollback os descarta. Assim nenhum assinante do change
feed é notificado de um write que não foi confirmado.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.events.base import AggregateRoot, DomainEvent
from app.domain.shared.errors import TransientStoreError
from app.application.shared.event_dispatcher import dispatch_events

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._pending_events: list[DomainEvent] = []

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending_events)

    def collect_events_from(self, *aggregates: AggregateRoot) -> None:
        """Coleta eventos pendentes de um ou mais aggregates."""
        for agg in aggregates:
            self._pending_events.extend(agg.collect_events())

    async def commit(self) -> None:
        """Commit da sessão + despacho dos eventos coletados."""
        try:
            await self._session.commit()
        except (OperationalError, InterfaceError) as exc:
            await self.rollback()
            logger.warning("Commit falhou por erro transitório: %s", exc)
            raise TransientStoreError(str(exc)) from exc
        await self.dispatch_pending()

    async def dispatch_pending(self) -> None:
        """Despacha eventos coletados depois de um commit já realizado."""
        if not self._pending_events:
            return
        events, self._pending_events = self._pending_events, []
        await dispatch_events(events)

    async def rollback(self) -> None:
        await self._session.rollback()
        self._pending_events.clear()

    async def flush(self) -> None:
        await self._session.flush()
