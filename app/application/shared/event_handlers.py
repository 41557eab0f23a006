"""
Event Handlers — traduzem eventos de domínio já commitados em notificações
do change feed ao vivo e em logs de auditoria.

Registrados na inicialização da app (app/main.py).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from app.application.shared.change_feed import INSERT, UPDATE, ChangeEvent
from app.domain.events.ticket_events import (
    TicketAssigned,
    TicketCommentAdded,
    TicketCreated,
    TicketStatusChanged,
)
from app.domain.events.user_events import (
    UserCreated,
    UserRoleChanged,
    UserStatusChanged,
    UserUpdated,
)
from app.infrastructure.realtime.change_feed import get_change_feed

logger = logging.getLogger(__name__)

TICKETS_TABLE = "tickets"
COMMENTS_TABLE = "ticket_comments"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _row(snapshot: dict) -> dict:
    return {
        key: _iso(value) if isinstance(value, datetime) else value
        for key, value in snapshot.items()
    }


# ════════════════════════════════════════════════════════════════
# TICKET → CHANGE FEED
# ════════════════════════════════════════════════════════════════

async def handle_ticket_created(event: TicketCreated) -> None:
    await get_change_feed().publish(ChangeEvent(
        table=TICKETS_TABLE,
        event_type=INSERT,
        record=_row(event.row),
    ))
    logger.info("Ticket %d criado por %s", event.ticket_id, event.created_by)


async def handle_ticket_status_changed(event: TicketStatusChanged) -> None:
    await get_change_feed().publish(ChangeEvent(
        table=TICKETS_TABLE,
        event_type=UPDATE,
        record=_row(event.row),
    ))
    logger.info(
        "Ticket %d status %s→%s por %s",
        event.ticket_id, event.old_status, event.new_status, event.changed_by,
    )


async def handle_ticket_assigned(event: TicketAssigned) -> None:
    await get_change_feed().publish(ChangeEvent(
        table=TICKETS_TABLE,
        event_type=UPDATE,
        record=_row(event.row),
    ))
    logger.info(
        "Ticket %d atribuído %s→%s por %s",
        event.ticket_id, event.old_assignee, event.new_assignee, event.assigned_by,
    )


async def handle_ticket_comment_added(event: TicketCommentAdded) -> None:
    await get_change_feed().publish(ChangeEvent(
        table=COMMENTS_TABLE,
        event_type=INSERT,
        record={
            "id": event.comment_id,
            "ticket_id": event.ticket_id,
            "user_id": event.author_id,
            "content": event.content,
            "created_at": _iso(event.created_at),
        },
    ))


# ════════════════════════════════════════════════════════════════
# USER AUDIT HANDLERS
# ════════════════════════════════════════════════════════════════

def handle_user_created(event: UserCreated) -> None:
    logger.info(
        "Audit: User %d (%s, role=%s) criado por %s",
        event.user_id, event.email, event.role, event.created_by,
    )


def handle_user_updated(event: UserUpdated) -> None:
    logger.info(
        "Audit: User %d atualizado por %s: %s",
        event.user_id, event.performed_by, sorted(event.changed_fields),
    )


def handle_user_role_changed(event: UserRoleChanged) -> None:
    logger.warning(
        "Audit: User %d role %s→%s por %s",
        event.user_id, event.old_role, event.new_role, event.performed_by,
    )


def handle_user_status_changed(event: UserStatusChanged) -> None:
    logger.info(
        "Audit: User %d status %s→%s por %s",
        event.user_id, event.old_status, event.new_status, event.performed_by,
    )


# ════════════════════════════════════════════════════════════════
# REGISTRATION
# ════════════════════════════════════════════════════════════════

def register_all_handlers() -> None:
    """Registra os handlers de change feed e auditoria no dispatcher."""
    from app.application.shared.event_dispatcher import register_handler

    # Tickets
    register_handler(TicketCreated, handle_ticket_created)
    register_handler(TicketStatusChanged, handle_ticket_status_changed)
    register_handler(TicketAssigned, handle_ticket_assigned)
    register_handler(TicketCommentAdded, handle_ticket_comment_added)

    # Users
    register_handler(UserCreated, handle_user_created)
    register_handler(UserUpdated, handle_user_updated)
    register_handler(UserRoleChanged, handle_user_role_changed)
    register_handler(UserStatusChanged, handle_user_status_changed)

    logger.info("Event handlers registrados")
