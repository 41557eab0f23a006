"""DTOs da camada de aplicação para Tickets — commands, queries e resultados."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from app.domain.shared.errors import HistoryAppendError

T = TypeVar("T")


# ════════════════════════════════════════════════════════════════
# COMMANDS
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CreateTicketCommand:
    title: Optional[str]
    description: Optional[str]
    priority: Optional[str]
    category: Optional[str]
    asset_id: Optional[str] = None


@dataclass(frozen=True)
class ChangeStatusCommand:
    ticket_id: int
    new_status: str


@dataclass(frozen=True)
class AssignTicketCommand:
    ticket_id: int
    assignee_id: Optional[int] = None   # None limpa a atribuição


@dataclass(frozen=True)
class AddCommentCommand:
    ticket_id: int
    content: Optional[str]


# ════════════════════════════════════════════════════════════════
# QUERIES
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GetTicketByIdQuery:
    ticket_id: int


@dataclass(frozen=True)
class ListTicketsQuery:
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    market: Optional[str] = None
    created_by: Optional[int] = None
    assigned_to: Optional[int] = None
    search: Optional[str] = None
    ascending: bool = False
    skip: int = 0
    limit: int = 100


# ════════════════════════════════════════════════════════════════
# RESULT DTOs
# ════════════════════════════════════════════════════════════════

@dataclass
class PersonResult:
    id: int
    full_name: Optional[str]
    email: str


@dataclass
class TicketResult:
    id: int
    title: str
    description: str
    status: str
    priority: str
    category: str
    created_by: Optional[int]
    assigned_to: Optional[int]
    asset_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    creator: Optional[PersonResult] = None
    assignee: Optional[PersonResult] = None


@dataclass
class CommentResult:
    id: int
    ticket_id: int
    user_id: Optional[int]
    content: str
    created_at: Optional[str] = None
    author: Optional[PersonResult] = None


@dataclass
class HistoryResult:
    id: int
    ticket_id: int
    user_id: Optional[int]
    action: str
    details: str
    created_at: Optional[str] = None
    actor: Optional[PersonResult] = None


@dataclass
class TicketDetailResult:
    ticket: TicketResult
    comments: list[CommentResult] = field(default_factory=list)
    history: list[HistoryResult] = field(default_factory=list)


@dataclass
class TicketPageResult:
    items: list[TicketResult]
    total: int
    skip: int
    limit: int


@dataclass
class MutationOutcome(Generic[T]):
    """
    Resultado de uma mutação do ciclo de vida.

    `history_error` preenchido significa DEGRADED: a mutação principal foi
    confirmada, mas o evento de histórico correspondente não foi gravado.
    """
    result: T
    history_error: Optional[HistoryAppendError] = None

    @property
    def degraded(self) -> bool:
        return self.history_error is not None

    @property
    def warnings(self) -> list[str]:
        return [str(self.history_error)] if self.history_error else []
