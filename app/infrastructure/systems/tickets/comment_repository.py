"""Repositório de comentários de ticket — append-only."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.systems.tickets.entity import TicketComment
from app.domain.systems.tickets.repository import ICommentRepository
from app.infrastructure.database.models import TicketCommentModel, UserModel
from app.infrastructure.systems.users.repository import to_summary


class CommentRepository(ICommentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: TicketCommentModel, author=None) -> TicketComment:
        return TicketComment(
            id=model.id,
            ticket_id=model.ticket_id,
            user_id=model.user_id,
            content=model.content,
            created_at=model.created_at,
            author=author,
        )

    async def add(self, comment: TicketComment) -> TicketComment:
        model = TicketCommentModel(
            ticket_id=comment.ticket_id,
            user_id=comment.user_id,
            content=comment.content,
            created_at=comment.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        author = None
        if model.user_id is not None:
            author = to_summary(await self._session.get(UserModel, model.user_id))
        return self._to_entity(model, author)

    async def list_by_ticket(self, ticket_id: int) -> AsyncIterator[TicketComment]:
        stmt = (
            select(TicketCommentModel)
            .where(TicketCommentModel.ticket_id == ticket_id)
            .options(selectinload(TicketCommentModel.user))
            .order_by(TicketCommentModel.created_at.asc(), TicketCommentModel.id.asc())
        )
        result = await self._session.execute(stmt)
        for model in result.scalars():
            yield self._to_entity(model, to_summary(model.user))
