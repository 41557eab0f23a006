"""Eventos de domínio do ciclo de vida de Tickets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.domain.events.base import DomainEvent


@dataclass(frozen=True)
class TicketCreated(DomainEvent):
    ticket_id: int = 0
    title: str = ""
    status: str = ""
    priority: str = ""
    category: str = ""
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    row: dict = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class TicketStatusChanged(DomainEvent):
    ticket_id: int = 0
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    row: dict = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class TicketAssigned(DomainEvent):
    ticket_id: int = 0
    old_assignee: Optional[int] = None
    new_assignee: Optional[int] = None
    assigned_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    row: dict = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class TicketCommentAdded(DomainEvent):
    ticket_id: int = 0
    comment_id: int = 0
    author_id: Optional[int] = None
    content: str = ""
    created_at: Optional[datetime] = None
