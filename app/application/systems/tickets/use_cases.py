"""
Use Cases de Tickets — camada de Aplicação.

Orquestram os repositórios de tickets, comentários e histórico. Toda
mutação segue a mesma sequência:

  1. update parcial (ou insert do comentário) + commit
  2. append do evento de histórico em transação própria
  3. despacho dos eventos de domínio (change feed ao vivo)

Se o passo 2 falhar a mutação continua confirmada e o resultado volta
marcado como DEGRADED.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Optional, TypeVar

from app.domain.shared.errors import HistoryAppendError, NotFoundError, ValidationError
from app.domain.shared.value_objects import TicketFilter
from app.domain.systems.tickets.entity import (
    HistoryAction,
    HistoryEvent,
    Ticket,
    TicketComment,
    TicketStatus,
)
from app.domain.systems.tickets.repository import (
    ICommentRepository,
    IHistoryRepository,
    ITicketRepository,
)
from app.domain.systems.users.entity import User, UserSummary
from app.domain.systems.users.repository import IUserRepository
from app.domain.systems.users.authorization_service import AuthorizationService
from app.application.dtos.ticket_dtos import (
    AddCommentCommand,
    AssignTicketCommand,
    ChangeStatusCommand,
    CommentResult,
    CreateTicketCommand,
    GetTicketByIdQuery,
    HistoryResult,
    ListTicketsQuery,
    MutationOutcome,
    PersonResult,
    TicketDetailResult,
    TicketPageResult,
    TicketResult,
)
from app.application.shared.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ════════════════════════════════════════════════════════════════
# MAPEAMENTO
# ════════════════════════════════════════════════════════════════

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _person(summary: Optional[UserSummary]) -> Optional[PersonResult]:
    if summary is None:
        return None
    return PersonResult(id=summary.id, full_name=summary.full_name, email=summary.email)


def to_ticket_result(t: Ticket) -> TicketResult:
    return TicketResult(
        id=t.id,
        title=t.title,
        description=t.description,
        status=t.status.value,
        priority=t.priority.value,
        category=t.category,
        created_by=t.created_by,
        assigned_to=t.assigned_to,
        asset_id=t.asset_id,
        created_at=_iso(t.created_at),
        updated_at=_iso(t.updated_at),
        creator=_person(t.creator),
        assignee=_person(t.assignee),
    )


def _comment_result(c: TicketComment) -> CommentResult:
    return CommentResult(
        id=c.id,
        ticket_id=c.ticket_id,
        user_id=c.user_id,
        content=c.content,
        created_at=_iso(c.created_at),
        author=_person(c.author),
    )


def _history_result(h: HistoryEvent) -> HistoryResult:
    return HistoryResult(
        id=h.id,
        ticket_id=h.ticket_id,
        user_id=h.user_id,
        action=h.action,
        details=h.details,
        created_at=_iso(h.created_at),
        actor=_person(h.actor),
    )


async def _drain(items: AsyncIterator[T]) -> list[T]:
    return [item async for item in items]


async def _load_ticket(repo: ITicketRepository, ticket_id: int) -> Ticket:
    ticket = await repo.get_by_id(ticket_id)
    if not ticket:
        raise NotFoundError("Ticket", ticket_id)
    return ticket


# ════════════════════════════════════════════════════════════════
# AUDIT TRAIL
# ════════════════════════════════════════════════════════════════

class AuditTrail:
    """
    Grava eventos de histórico numa transação própria, depois que a
    mutação principal já foi confirmada.
    """

    def __init__(self, repo: IHistoryRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def append(self, ticket_id: int, actor_id: Optional[int], action: str, details: str) -> HistoryEvent:
        event = HistoryEvent(ticket_id=ticket_id, user_id=actor_id, action=action, details=details)
        try:
            saved = await self._repo.append(event)
            await self._uow.commit()
        except Exception as exc:
            await self._uow.rollback()
            raise HistoryAppendError(ticket_id, action, exc) from exc
        return saved


async def _finish_mutation(
    uow: UnitOfWork,
    audit: AuditTrail,
    ticket: Ticket,
    actor: User,
    action: str,
    details: str,
    result: T,
) -> MutationOutcome[T]:
    """Passos 2 e 3 de toda mutação: histórico e despacho pós-commit."""
    outcome = MutationOutcome(result)
    try:
        await audit.append(ticket.id, actor.id, action, details)
    except HistoryAppendError as exc:
        logger.warning("DEGRADED: %s (%r)", exc, exc.cause)
        outcome.history_error = exc
    uow.collect_events_from(ticket)
    await uow.dispatch_pending()
    return outcome


# ════════════════════════════════════════════════════════════════
# CREATE / READ
# ════════════════════════════════════════════════════════════════

class CreateTicketUseCase:
    def __init__(self, repo: ITicketRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def execute(self, cmd: CreateTicketCommand, actor: User) -> TicketResult:
        # Status e criador nunca vêm do chamador
        ticket = Ticket.open_new(
            title=cmd.title,
            description=cmd.description,
            priority=cmd.priority,
            category=cmd.category,
            created_by=actor.id,
            asset_id=cmd.asset_id,
        )

        created = await self._repo.create(ticket)
        created.creator = actor.to_summary()
        created.record_creation()
        self._uow.collect_events_from(created)
        await self._uow.commit()
        return to_ticket_result(created)


class GetTicketDetailUseCase:
    """
    Ticket + comentários + histórico.

    As três leituras rodam concorrentemente; cada repositório precisa
    estar ligado a uma sessão própria.
    """

    def __init__(
        self,
        ticket_repo: ITicketRepository,
        comment_repo: ICommentRepository,
        history_repo: IHistoryRepository,
    ) -> None:
        self._tickets = ticket_repo
        self._comments = comment_repo
        self._history = history_repo

    async def execute(self, query: GetTicketByIdQuery, actor: User) -> TicketDetailResult:
        ticket, comments, history = await asyncio.gather(
            self._tickets.get_by_id(query.ticket_id),
            _drain(self._comments.list_by_ticket(query.ticket_id)),
            _drain(self._history.list_by_ticket(query.ticket_id)),
        )
        if not ticket:
            raise NotFoundError("Ticket", query.ticket_id)

        AuthorizationService.ensure_can_access_ticket(actor, ticket.created_by, ticket.assigned_to)

        return TicketDetailResult(
            ticket=to_ticket_result(ticket),
            comments=[_comment_result(c) for c in comments],
            history=[_history_result(h) for h in history],
        )


class ListTicketsUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: ListTicketsQuery, actor: User) -> TicketPageResult:
        created_by = query.created_by
        if not actor.is_staff():
            # Usuário comum só enxerga os próprios tickets
            created_by = actor.id

        filters = TicketFilter(
            status=query.status,
            priority=query.priority,
            category=query.category,
            market=query.market,
            created_by=created_by,
            assigned_to=query.assigned_to,
            search=query.search,
            ascending=query.ascending,
            skip=query.skip,
            limit=query.limit,
        )
        items = [to_ticket_result(t) async for t in self._repo.list_by_filter(filters)]
        total = await self._repo.count_by_filter(filters)
        return TicketPageResult(items=items, total=total, skip=query.skip, limit=query.limit)


class ListCommentsUseCase:
    def __init__(self, ticket_repo: ITicketRepository, comment_repo: ICommentRepository) -> None:
        self._tickets = ticket_repo
        self._comments = comment_repo

    async def execute(self, query: GetTicketByIdQuery, actor: User) -> list[CommentResult]:
        ticket = await _load_ticket(self._tickets, query.ticket_id)
        AuthorizationService.ensure_can_access_ticket(actor, ticket.created_by, ticket.assigned_to)
        return [_comment_result(c) async for c in self._comments.list_by_ticket(ticket.id)]


class ListHistoryUseCase:
    def __init__(self, ticket_repo: ITicketRepository, history_repo: IHistoryRepository) -> None:
        self._tickets = ticket_repo
        self._history = history_repo

    async def execute(self, query: GetTicketByIdQuery, actor: User) -> list[HistoryResult]:
        ticket = await _load_ticket(self._tickets, query.ticket_id)
        AuthorizationService.ensure_can_access_ticket(actor, ticket.created_by, ticket.assigned_to)
        return [_history_result(h) async for h in self._history.list_by_ticket(ticket.id)]


class ListAssignableUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, actor: User) -> list[PersonResult]:
        AuthorizationService.ensure_can_manage_tickets(actor)
        return [_person(s) for s in await self._repo.list_assignable()]


# ════════════════════════════════════════════════════════════════
# MUTATIONS
# ════════════════════════════════════════════════════════════════

class ChangeTicketStatusUseCase:
    def __init__(self, ticket_repo: ITicketRepository, audit: AuditTrail, uow: UnitOfWork) -> None:
        self._tickets = ticket_repo
        self._audit = audit
        self._uow = uow

    async def execute(self, cmd: ChangeStatusCommand, actor: User) -> MutationOutcome[TicketResult]:
        AuthorizationService.ensure_can_manage_tickets(actor)
        new_status = TicketStatus.parse(cmd.new_status)
        ticket = await _load_ticket(self._tickets, cmd.ticket_id)

        ticket.change_status(new_status, changed_by=actor.id)
        await self._tickets.update_status(ticket.id, ticket.status, ticket.updated_at)
        await self._uow.commit()

        return await _finish_mutation(
            self._uow, self._audit, ticket, actor,
            HistoryAction.STATUS,
            f"Alterou o status para {new_status.value}",
            to_ticket_result(ticket),
        )


class AssignTicketUseCase:
    def __init__(
        self,
        ticket_repo: ITicketRepository,
        user_repo: IUserRepository,
        audit: AuditTrail,
        uow: UnitOfWork,
    ) -> None:
        self._tickets = ticket_repo
        self._users = user_repo
        self._audit = audit
        self._uow = uow

    async def execute(self, cmd: AssignTicketCommand, actor: User) -> MutationOutcome[TicketResult]:
        AuthorizationService.ensure_can_manage_tickets(actor)
        ticket = await _load_ticket(self._tickets, cmd.ticket_id)

        assignee: Optional[User] = None
        if cmd.assignee_id is not None:
            assignee = await self._users.get_by_id(cmd.assignee_id)
            if not assignee:
                raise ValidationError(f"Usuário {cmd.assignee_id} não encontrado", field="assigned_to")
            if not assignee.is_active:
                raise ValidationError(f"Usuário {assignee.display_name} está inativo", field="assigned_to")

        ticket.assign_to(assignee, assigned_by=actor.id)
        await self._tickets.update_assignee(ticket.id, ticket.assigned_to, ticket.updated_at)
        await self._uow.commit()

        if assignee:
            details = f"Atribuiu o ticket a {assignee.display_name}"
        else:
            details = "Removeu a atribuição do ticket"
        return await _finish_mutation(
            self._uow, self._audit, ticket, actor,
            HistoryAction.ASSIGN, details, to_ticket_result(ticket),
        )


class AddCommentUseCase:
    def __init__(
        self,
        ticket_repo: ITicketRepository,
        comment_repo: ICommentRepository,
        audit: AuditTrail,
        uow: UnitOfWork,
    ) -> None:
        self._tickets = ticket_repo
        self._comments = comment_repo
        self._audit = audit
        self._uow = uow

    async def execute(self, cmd: AddCommentCommand, actor: User) -> MutationOutcome[CommentResult]:
        ticket = await _load_ticket(self._tickets, cmd.ticket_id)
        AuthorizationService.ensure_can_comment_ticket(actor, ticket.created_by, ticket.assigned_to)

        comment = TicketComment(ticket_id=ticket.id, user_id=actor.id, content=(cmd.content or "").strip())
        comment.validate()

        created = await self._comments.add(comment)
        await self._uow.commit()

        ticket.record_comment(created)
        return await _finish_mutation(
            self._uow, self._audit, ticket, actor,
            HistoryAction.COMMENT,
            "Adicionou um comentário",
            _comment_result(created),
        )
