"""
Dispatcher de eventos de domínio.

O UnitOfWork entrega aqui os eventos coletados das entidades somente
depois do commit. Handlers publicam no change feed ao vivo e gravam logs;
a falha de um handler não impede os demais nem desfaz o commit.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Type

from app.domain.events.base import DomainEvent

logger = logging.getLogger(__name__)

# Registry: event_type → list[handler]
_handlers: dict[Type[DomainEvent], list[Callable]] = {}


def register_handler(event_type: Type[DomainEvent], handler: Callable) -> None:
    """Registra um handler para um tipo de evento (sem duplicar)."""
    handlers = _handlers.setdefault(event_type, [])
    if handler not in handlers:
        handlers.append(handler)


def handlers_for(event_type: Type[DomainEvent]) -> list[Callable]:
    return list(_handlers.get(event_type, []))


async def dispatch_events(events: Iterable[DomainEvent]) -> int:
    """
    Despacha eventos para os handlers registrados.

    Retorna quantas entregas terminaram sem erro.
    """
    delivered = 0
    for event in events:
        for handler in handlers_for(type(event)):
            try:
                result = handler(event)
                # Suporta handlers async e sync
                if hasattr(result, "__await__"):
                    await result
                delivered += 1
            except Exception:
                logger.exception(
                    "Erro ao despachar evento %s para handler %s",
                    event.event_type,
                    getattr(handler, "__name__", repr(handler)),
                )
    return delivered


def clear_handlers() -> None:
    """Limpa todos os handlers (útil em testes)."""
    _handlers.clear()
