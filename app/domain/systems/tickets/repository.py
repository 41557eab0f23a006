"""
Portas dos repositórios do ciclo de vida de tickets.

Três repositórios independentes sobre o mesmo record store: tickets,
comentários (append-only) e histórico (append-only). Listagens devolvem
iteradores assíncronos finitos e não reiniciáveis.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Optional, Sequence

from app.domain.shared.value_objects import TicketFilter
from app.domain.systems.users.entity import UserSummary
from .entity import HistoryEvent, Ticket, TicketComment, TicketStatus


@dataclass
class TicketStats:
    total: int = 0
    open: int = 0
    resolved_today: int = 0
    critical_open: int = 0
    total_users: int = 0
    recent: list[Ticket] = field(default_factory=list)


class ITicketRepository(ABC):

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        """Ticket com criador e responsável já expandidos."""
        ...

    @abstractmethod
    def list_by_filter(self, filters: TicketFilter) -> AsyncIterator[Ticket]:
        ...

    @abstractmethod
    async def count_by_filter(self, filters: TicketFilter) -> int:
        ...

    @abstractmethod
    async def update_status(
        self, ticket_id: int, status: TicketStatus, updated_at: datetime
    ) -> None:
        """Update parcial: apenas `status` e `updated_at`."""
        ...

    @abstractmethod
    async def update_assignee(
        self, ticket_id: int, assignee_id: Optional[int], updated_at: datetime
    ) -> None:
        """Update parcial: apenas `assigned_to` e `updated_at`."""
        ...

    @abstractmethod
    async def list_assignable(self) -> Sequence[UserSummary]:
        """Usuários ativos com role admin/support."""
        ...

    @abstractmethod
    async def stats(self, since: datetime, recent_limit: int = 5) -> TicketStats:
        ...


class ICommentRepository(ABC):

    @abstractmethod
    async def add(self, comment: TicketComment) -> TicketComment:
        ...

    @abstractmethod
    def list_by_ticket(self, ticket_id: int) -> AsyncIterator[TicketComment]:
        """Ordem de criação ascendente."""
        ...


class IHistoryRepository(ABC):

    @abstractmethod
    async def append(self, event: HistoryEvent) -> HistoryEvent:
        ...

    @abstractmethod
    def list_by_ticket(self, ticket_id: int) -> AsyncIterator[HistoryEvent]:
        """Ordem de criação descendente (mais recente primeiro)."""
        ...
