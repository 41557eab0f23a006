"""
Sistema de eventos de domínio.

Aggregates registram eventos ao mudar de estado; o UnitOfWork os coleta e,
somente depois do commit, despacha para handlers (change feed ao vivo, logs).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Classe base para todos os eventos de domínio."""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict[str, Any]:
        """Campos próprios do evento, sem os metadados da base."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("event_id", "occurred_at")
        }


class AggregateRoot:
    """
    Mixin para entidades que disparam eventos de domínio.

    Os eventos ficam pendentes até `collect_events()`, que os entrega uma
    única vez.
    """

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []

    def _record_event(self, event: DomainEvent) -> None:
        self._events.append(event)

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._events)

    def collect_events(self) -> list[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events
