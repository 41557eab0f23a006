"""
Entidades do ciclo de vida de tickets: Ticket (aggregate), comentários e
eventos de histórico.

Mutações de status e atribuição são parciais — cada uma toca apenas o seu
próprio campo e o `updated_at`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.domain.events.base import AggregateRoot, utcnow
from app.domain.events.ticket_events import (
    TicketAssigned,
    TicketCommentAdded,
    TicketCreated,
    TicketStatusChanged,
)
from app.domain.shared.errors import ValidationError
from app.domain.systems.users.entity import User, UserSummary


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value) -> "TicketStatus":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Status inválido: {value}", field="status") from None


class TicketPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value) -> "TicketPriority":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Prioridade inválida: {value}", field="priority") from None


class HistoryAction:
    """
    Tipos de ação do histórico. Enumeração aberta: qualquer string estável
    serve, estas são apenas as que o ciclo de vida grava.
    """
    COMMENT = "comment"
    STATUS = "status"
    ASSIGN = "assign"


def _require_text(value: Optional[str], field_name: str, label: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} é obrigatório", field=field_name)


@dataclass
class Ticket(AggregateRoot):
    id: Optional[int] = None
    title: str = ""
    description: str = ""
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str = ""
    created_by: Optional[int] = None    # FK → User, imutável
    assigned_to: Optional[int] = None   # FK → User
    asset_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    creator: Optional[UserSummary] = None
    assignee: Optional[UserSummary] = None

    def __post_init__(self):
        AggregateRoot.__init__(self)

    # ── Criação ──

    @classmethod
    def open_new(
        cls,
        *,
        title: Optional[str],
        description: Optional[str],
        priority: Optional[str],
        category: Optional[str],
        created_by: int,
        asset_id: Optional[str] = None,
    ) -> "Ticket":
        """Novo ticket sempre nasce `open` e pertence ao usuário que o abriu."""
        _require_text(title, "title", "Título")
        _require_text(description, "description", "Descrição")
        _require_text(priority, "priority", "Prioridade")
        _require_text(category, "category", "Categoria")
        now = utcnow()
        return cls(
            title=title.strip(),
            description=description.strip(),
            status=TicketStatus.OPEN,
            priority=TicketPriority.parse(priority),
            category=category.strip(),
            created_by=created_by,
            asset_id=asset_id or None,
            created_at=now,
            updated_at=now,
        )

    def record_creation(self) -> None:
        self._record_event(TicketCreated(
            ticket_id=self.id,
            title=self.title,
            status=self.status.value,
            priority=self.priority.value,
            category=self.category,
            created_by=self.created_by,
            created_at=self.created_at,
            row=self.snapshot(),
        ))

    # ── Status ──

    def change_status(self, new_status: TicketStatus, changed_by: int) -> None:
        """Qualquer valor do enum é aceito; repetir o status atual também é registrado."""
        old_status = self.status
        self.status = new_status
        self._touch()
        self._record_event(TicketStatusChanged(
            ticket_id=self.id,
            old_status=old_status.value,
            new_status=new_status.value,
            changed_by=changed_by,
            updated_at=self.updated_at,
            row=self.snapshot(),
        ))

    # ── Atribuição ──

    def assign_to(self, assignee: Optional[User], assigned_by: int) -> None:
        """`None` limpa a atribuição; caso contrário o alvo precisa ser admin/support."""
        if assignee is not None and not assignee.is_staff():
            raise ValidationError(
                f"Usuário {assignee.display_name} (role={assignee.role.value}) "
                "não pode receber tickets",
                field="assigned_to",
            )
        old = self.assigned_to
        self.assigned_to = assignee.id if assignee else None
        self.assignee = assignee.to_summary() if assignee else None
        self._touch()
        self._record_event(TicketAssigned(
            ticket_id=self.id,
            old_assignee=old,
            new_assignee=self.assigned_to,
            assigned_by=assigned_by,
            updated_at=self.updated_at,
            row=self.snapshot(),
        ))

    # ── Comentários ──

    def record_comment(self, comment: "TicketComment") -> None:
        self._record_event(TicketCommentAdded(
            ticket_id=self.id,
            comment_id=comment.id,
            author_id=comment.user_id,
            content=comment.content,
            created_at=comment.created_at,
        ))

    def snapshot(self) -> dict:
        """Linha completa da tabela `tickets` no estado atual do aggregate."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "category": self.category,
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "asset_id": self.asset_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def _touch(self) -> None:
        now = utcnow()
        if self.created_at is not None and _naive(now) < _naive(self.created_at):
            now = self.created_at
        self.updated_at = now


def _naive(value: datetime) -> datetime:
    # SQLite devolve datetimes sem tz; Postgres devolve com tz
    return value.replace(tzinfo=None) if value.tzinfo else value


@dataclass
class TicketComment:
    """Comentário imutável de um ticket."""
    id: Optional[int] = None
    ticket_id: Optional[int] = None
    user_id: Optional[int] = None
    content: str = ""
    created_at: datetime = field(default_factory=utcnow)
    author: Optional[UserSummary] = None

    def validate(self) -> None:
        if not self.content or not self.content.strip():
            raise ValidationError("O comentário não pode ser vazio", field="content")


@dataclass
class HistoryEvent:
    """Registro imutável de uma ação sobre um ticket."""
    id: Optional[int] = None
    ticket_id: Optional[int] = None
    user_id: Optional[int] = None
    action: str = ""
    details: str = ""
    created_at: datetime = field(default_factory=utcnow)
    actor: Optional[UserSummary] = None

    def validate(self) -> None:
        if not self.action or not self.action.strip():
            raise ValidationError("A ação do histórico é obrigatória", field="action")
