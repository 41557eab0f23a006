"""
Porta do Live Change Feed — notificações de linhas confirmadas no record store.

O feed só publica eventos de writes já commitados; assinantes recebem
apenas o que acontecer depois de assinar (sem replay).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Iterable, Mapping, Optional

from app.domain.events.base import utcnow

INSERT = "INSERT"
UPDATE = "UPDATE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    record: dict[str, Any]
    commit_timestamp: datetime = field(default_factory=utcnow)


class IChangeStream(ABC):
    """Iterador assíncrono de ChangeEvents de uma assinatura."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        ...

    @abstractmethod
    async def __anext__(self) -> ChangeEvent:
        ...


class IChangeFeed(ABC):

    @abstractmethod
    def subscribe(
        self,
        table: str,
        row_filter: Optional[Mapping[str, Any]] = None,
        event_types: Optional[Iterable[str]] = None,
    ) -> IChangeStream:
        ...

    @abstractmethod
    def unsubscribe(self, stream: IChangeStream) -> None:
        ...

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...
