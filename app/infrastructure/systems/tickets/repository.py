"""Implementação concreta do repositório de Tickets — SQLAlchemy com filtros e updates parciais."""

from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.shared.errors import NotFoundError
from app.domain.shared.value_objects import TicketFilter
from app.domain.systems.tickets.entity import Ticket, TicketPriority, TicketStatus
from app.domain.systems.tickets.repository import ITicketRepository, TicketStats
from app.domain.systems.users.entity import STAFF_ROLES, UserStatus, UserSummary
from app.infrastructure.database.models import TicketModel, UserModel
from app.infrastructure.systems.users.repository import to_summary


class TicketRepository(ITicketRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: TicketModel, with_people: bool = False) -> Ticket:
        return Ticket(
            id=model.id,
            title=model.title,
            description=model.description or "",
            status=TicketStatus(model.status),
            priority=TicketPriority(model.priority),
            category=model.category,
            created_by=model.created_by,
            assigned_to=model.assigned_to,
            asset_id=model.asset_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            creator=to_summary(model.creator) if with_people else None,
            assignee=to_summary(model.assignee) if with_people else None,
        )

    def _build_filter(self, stmt, filters: TicketFilter):
        if filters.status is not None:
            stmt = stmt.where(TicketModel.status == TicketStatus.parse(filters.status).value)
        if filters.priority is not None:
            stmt = stmt.where(TicketModel.priority == TicketPriority.parse(filters.priority).value)
        if filters.category:
            stmt = stmt.where(TicketModel.category == filters.category)
        if filters.market:
            stmt = stmt.join(TicketModel.creator).where(UserModel.market == filters.market)
        if filters.created_by is not None:
            stmt = stmt.where(TicketModel.created_by == filters.created_by)
        if filters.assigned_to is not None:
            stmt = stmt.where(TicketModel.assigned_to == filters.assigned_to)
        if filters.search:
            stmt = stmt.where(TicketModel.title.ilike(f"%{filters.search}%"))
        return stmt

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            title=ticket.title,
            description=ticket.description,
            status=ticket.status.value,
            priority=ticket.priority.value,
            category=ticket.category,
            asset_id=ticket.asset_id,
            created_by=ticket.created_by,
            assigned_to=ticket.assigned_to,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at or ticket.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        stmt = (
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .options(selectinload(TicketModel.creator), selectinload(TicketModel.assignee))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model, with_people=True) if model else None

    async def list_by_filter(self, filters: TicketFilter) -> AsyncIterator[Ticket]:
        stmt = self._build_filter(select(TicketModel), filters)
        if filters.ascending:
            stmt = stmt.order_by(TicketModel.created_at.asc(), TicketModel.id.asc())
        else:
            stmt = stmt.order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        stmt = (
            stmt.options(selectinload(TicketModel.creator), selectinload(TicketModel.assignee))
            .offset(filters.skip)
            .limit(filters.limit)
        )
        result = await self._session.execute(stmt)
        for model in result.scalars():
            yield self._to_entity(model, with_people=True)

    async def count_by_filter(self, filters: TicketFilter) -> int:
        stmt = self._build_filter(select(func.count(TicketModel.id)).select_from(TicketModel), filters)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def update_status(self, ticket_id: int, status: TicketStatus, updated_at: datetime) -> None:
        await self._partial_update(ticket_id, status=status.value, updated_at=updated_at)

    async def update_assignee(
        self, ticket_id: int, assignee_id: Optional[int], updated_at: datetime
    ) -> None:
        await self._partial_update(ticket_id, assigned_to=assignee_id, updated_at=updated_at)

    async def _partial_update(self, ticket_id: int, **values) -> None:
        # UPDATE restrito às colunas informadas; edições concorrentes de
        # outros campos não são sobrescritas.
        stmt = update(TicketModel).where(TicketModel.id == ticket_id).values(**values)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Ticket", ticket_id)

    async def list_assignable(self) -> Sequence[UserSummary]:
        stmt = (
            select(UserModel)
            .where(UserModel.role.in_([r.value for r in STAFF_ROLES]))
            .where(UserModel.status == UserStatus.ACTIVE.value)
            .order_by(UserModel.full_name, UserModel.email)
        )
        result = await self._session.execute(stmt)
        return [to_summary(m) for m in result.scalars().all()]

    async def stats(self, since: datetime, recent_limit: int = 5) -> TicketStats:
        async def _count(*conditions) -> int:
            stmt = select(func.count(TicketModel.id))
            for condition in conditions:
                stmt = stmt.where(condition)
            return (await self._session.execute(stmt)).scalar_one()

        recent = [
            t async for t in self.list_by_filter(TicketFilter(limit=recent_limit))
        ]
        users = await self._session.execute(select(func.count(UserModel.id)))
        return TicketStats(
            total=await _count(),
            open=await _count(TicketModel.status == TicketStatus.OPEN.value),
            resolved_today=await _count(
                TicketModel.status == TicketStatus.RESOLVED.value,
                TicketModel.updated_at >= since,
            ),
            critical_open=await _count(
                TicketModel.priority == TicketPriority.CRITICAL.value,
                TicketModel.status == TicketStatus.OPEN.value,
            ),
            total_users=users.scalar_one(),
            recent=recent,
        )
