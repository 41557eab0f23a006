"""
Endpoints de Tickets — /api/v1/tickets

Criação, listagem com filtros e paginação, detalhe (ticket + comentários +
histórico), mudança de status, atribuição, comentários, histórico e o
canal ao vivo via WebSocket.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.shared.errors import ChannelClosedError
from app.domain.systems.users.entity import User
from app.domain.systems.users.authorization_service import AuthorizationError, AuthorizationService
from app.infrastructure.database import get_session_factory
from app.infrastructure.systems.tickets.repository import TicketRepository
from app.infrastructure.systems.tickets.comment_repository import CommentRepository
from app.infrastructure.systems.tickets.history_repository import HistoryRepository
from app.infrastructure.systems.users.repository import UserRepository
from app.application.shared.unit_of_work import UnitOfWork
from app.application.dtos.ticket_dtos import (
    AddCommentCommand,
    AssignTicketCommand,
    ChangeStatusCommand,
    CreateTicketCommand,
    GetTicketByIdQuery,
    ListTicketsQuery,
    MutationOutcome,
)
from app.application.systems.tickets.live_updates import LiveUpdateChannel
from app.application.systems.tickets.use_cases import (
    AddCommentUseCase,
    AssignTicketUseCase,
    AuditTrail,
    ChangeTicketStatusUseCase,
    CreateTicketUseCase,
    GetTicketDetailUseCase,
    ListAssignableUseCase,
    ListCommentsUseCase,
    ListHistoryUseCase,
    ListTicketsUseCase,
)
from app.presentation.api.v1.schemas import (
    AssignTicketRequest,
    CommentCreate,
    CommentOut,
    HistoryOut,
    LiveMessage,
    MutationOut,
    PaginatedResponse,
    PersonOut,
    StatusChangeRequest,
    TicketCreate,
    TicketDetailOut,
    TicketOut,
)
from app.presentation.api.v1.deps import (
    get_audit_trail,
    get_comment_repo,
    get_current_active_user,
    get_history_repo,
    get_live_channel,
    get_ticket_detail_use_case,
    get_ticket_repo,
    get_uow,
    get_user_repo,
    user_id_from_token,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _mutation_out(outcome: MutationOutcome, schema) -> MutationOut:
    return MutationOut[schema](
        data=schema.model_validate(outcome.result),
        degraded=outcome.degraded,
        warnings=outcome.warnings,
    )


# ════════════════════════════════════════════════════════════════
# CREATE / LIST
# ════════════════════════════════════════════════════════════════

@router.post(
    "/",
    response_model=TicketOut,
    status_code=status.HTTP_201_CREATED,
    summary="Abrir ticket",
    description="O ticket nasce sempre `open` e pertence ao usuário autenticado.",
)
async def create_ticket(
    payload: TicketCreate,
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = CreateTicketUseCase(repo, uow)
    result = await uc.execute(
        CreateTicketCommand(
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            category=payload.category,
            asset_id=payload.asset_id,
        ),
        actor=current_user,
    )
    return TicketOut.model_validate(result)


@router.get(
    "/",
    response_model=PaginatedResponse[TicketOut],
    summary="Listar tickets com paginação e filtros",
    description=(
        "Filtros opcionais: status, priority, category, market (mercado do criador), "
        "assigned_to, created_by, search (busca no título). Usuários comuns veem apenas "
        "os próprios tickets."
    ),
)
async def list_tickets(
    page: int = Query(default=1, ge=1, description="Página"),
    page_size: int = Query(default=20, ge=1, le=100, description="Itens por página"),
    ticket_status: Optional[str] = Query(default=None, alias="status"),
    priority: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None, max_length=100),
    market: Optional[str] = Query(default=None, max_length=100),
    assigned_to: Optional[int] = Query(default=None),
    created_by: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=255, description="Busca no título"),
    order: str = Query(default="desc", pattern="^(asc|desc)$", description="Ordem por data de criação"),
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    uc = ListTicketsUseCase(repo)
    result = await uc.execute(
        ListTicketsQuery(
            status=ticket_status,
            priority=priority,
            category=category,
            market=market,
            created_by=created_by,
            assigned_to=assigned_to,
            search=search,
            ascending=order == "asc",
            skip=(page - 1) * page_size,
            limit=page_size,
        ),
        actor=current_user,
    )
    return PaginatedResponse[TicketOut](
        items=[TicketOut.model_validate(t) for t in result.items],
        total=result.total,
        page=page,
        page_size=page_size,
        pages=math.ceil(result.total / page_size) if result.total else 0,
    )


@router.get(
    "/assignable",
    response_model=list[PersonOut],
    summary="Usuários que podem receber tickets (admin/support ativos)",
)
async def list_assignable(
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    people = await ListAssignableUseCase(repo).execute(actor=current_user)
    return [PersonOut.model_validate(p) for p in people]


# ════════════════════════════════════════════════════════════════
# DETAIL
# ════════════════════════════════════════════════════════════════

@router.get(
    "/{ticket_id}",
    response_model=TicketDetailOut,
    summary="Detalhe do ticket com comentários e histórico",
)
async def get_ticket(
    ticket_id: int,
    uc: GetTicketDetailUseCase = Depends(get_ticket_detail_use_case),
    current_user: User = Depends(get_current_active_user),
):
    result = await uc.execute(GetTicketByIdQuery(ticket_id=ticket_id), actor=current_user)
    return TicketDetailOut.model_validate(result)


# ════════════════════════════════════════════════════════════════
# STATUS / ASSIGNMENT
# ════════════════════════════════════════════════════════════════

@router.patch(
    "/{ticket_id}/status",
    response_model=MutationOut[TicketOut],
    summary="Alterar status (admin/support)",
    description="Qualquer status válido é aceito. `degraded=true` indica histórico não gravado.",
)
async def change_status(
    ticket_id: int,
    payload: StatusChangeRequest,
    repo: TicketRepository = Depends(get_ticket_repo),
    audit: AuditTrail = Depends(get_audit_trail),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = ChangeTicketStatusUseCase(repo, audit, uow)
    outcome = await uc.execute(
        ChangeStatusCommand(ticket_id=ticket_id, new_status=payload.status),
        actor=current_user,
    )
    return _mutation_out(outcome, TicketOut)


@router.patch(
    "/{ticket_id}/assign",
    response_model=MutationOut[TicketOut],
    summary="Atribuir ticket (admin/support)",
    description="O responsável precisa ser admin ou support ativo; `null` remove a atribuição.",
)
async def assign_ticket(
    ticket_id: int,
    payload: AssignTicketRequest,
    repo: TicketRepository = Depends(get_ticket_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    audit: AuditTrail = Depends(get_audit_trail),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = AssignTicketUseCase(repo, user_repo, audit, uow)
    outcome = await uc.execute(
        AssignTicketCommand(ticket_id=ticket_id, assignee_id=payload.assigned_to),
        actor=current_user,
    )
    return _mutation_out(outcome, TicketOut)


# ════════════════════════════════════════════════════════════════
# COMMENTS / HISTORY
# ════════════════════════════════════════════════════════════════

@router.get(
    "/{ticket_id}/comments",
    response_model=list[CommentOut],
    summary="Comentários do ticket (mais antigo primeiro)",
)
async def list_comments(
    ticket_id: int,
    repo: TicketRepository = Depends(get_ticket_repo),
    comments: CommentRepository = Depends(get_comment_repo),
    current_user: User = Depends(get_current_active_user),
):
    results = await ListCommentsUseCase(repo, comments).execute(
        GetTicketByIdQuery(ticket_id=ticket_id), actor=current_user
    )
    return [CommentOut.model_validate(c) for c in results]


@router.post(
    "/{ticket_id}/comments",
    response_model=MutationOut[CommentOut],
    status_code=status.HTTP_201_CREATED,
    summary="Comentar no ticket",
)
async def add_comment(
    ticket_id: int,
    payload: CommentCreate,
    repo: TicketRepository = Depends(get_ticket_repo),
    comments: CommentRepository = Depends(get_comment_repo),
    audit: AuditTrail = Depends(get_audit_trail),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = AddCommentUseCase(repo, comments, audit, uow)
    outcome = await uc.execute(
        AddCommentCommand(ticket_id=ticket_id, content=payload.content),
        actor=current_user,
    )
    return _mutation_out(outcome, CommentOut)


@router.get(
    "/{ticket_id}/history",
    response_model=list[HistoryOut],
    summary="Histórico do ticket (mais recente primeiro)",
)
async def list_history(
    ticket_id: int,
    repo: TicketRepository = Depends(get_ticket_repo),
    history: HistoryRepository = Depends(get_history_repo),
    current_user: User = Depends(get_current_active_user),
):
    results = await ListHistoryUseCase(repo, history).execute(
        GetTicketByIdQuery(ticket_id=ticket_id), actor=current_user
    )
    return [HistoryOut.model_validate(h) for h in results]


# ════════════════════════════════════════════════════════════════
# LIVE UPDATES — WebSocket
# ════════════════════════════════════════════════════════════════

async def _authorize_live(
    factory: async_sessionmaker[AsyncSession], token: Optional[str], ticket_id: int
) -> bool:
    user_id = user_id_from_token(token)
    if not user_id:
        return False
    async with factory() as session:
        user = await UserRepository(session).get_by_id(user_id)
        ticket = await TicketRepository(session).get_by_id(ticket_id)
    if not user or not user.is_active or not ticket:
        return False
    try:
        AuthorizationService.ensure_can_access_ticket(user, ticket.created_by, ticket.assigned_to)
    except AuthorizationError:
        return False
    return True


async def _drain_client(websocket: WebSocket) -> None:
    """Consome mensagens do cliente (ping/pong) até ele desconectar."""
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        return


@router.websocket("/{ticket_id}/live")
async def ticket_live(
    websocket: WebSocket,
    ticket_id: int,
    token: Optional[str] = Query(default=None),
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    channel: LiveUpdateChannel = Depends(get_live_channel),
):
    """
    Mensagens enviadas: `ticket_changed` (linha do ticket alterada),
    `comment_inserted` (novo comentário) e, se o feed terminar,
    `channel_closed`; nesse caso a conexão é fechada com 1013 e o
    cliente deve recarregar o ticket.
    """
    if not await _authorize_live(factory, token, ticket_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    closed = asyncio.Event()

    async def send(kind: str, record: Optional[dict] = None, detail: Optional[str] = None) -> None:
        message = LiveMessage(type=kind, ticket_id=ticket_id, record=record, detail=detail)
        await websocket.send_json(message.model_dump(exclude_none=True))

    async def on_ticket_changed(record: dict) -> None:
        await send("ticket_changed", record)

    async def on_comment_inserted(record: dict) -> None:
        await send("comment_inserted", record)

    async def on_closed(exc: ChannelClosedError) -> None:
        await send("channel_closed", detail=str(exc))
        closed.set()

    try:
        async with channel.subscription(ticket_id, on_ticket_changed, on_comment_inserted, on_closed):
            receiver = asyncio.create_task(_drain_client(websocket))
            watcher = asyncio.create_task(closed.wait())
            done, pending = await asyncio.wait({receiver, watcher}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                task.result()
    except ChannelClosedError as exc:
        await on_closed(exc)

    if closed.is_set():
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
    logger.debug("Live: conexão do ticket %d encerrada", ticket_id)
