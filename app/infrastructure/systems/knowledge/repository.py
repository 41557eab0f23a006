"""Implementação concreta do repositório da base de conhecimento — SQLAlchemy."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.shared.errors import NotFoundError
from app.domain.systems.knowledge.entity import KnowledgeArticle
from app.domain.systems.knowledge.repository import IKnowledgeRepository
from app.infrastructure.database.models import KnowledgeArticleModel
from app.infrastructure.systems.users.repository import to_summary


class KnowledgeRepository(IKnowledgeRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: KnowledgeArticleModel) -> KnowledgeArticle:
        return KnowledgeArticle(
            id=model.id,
            title=model.title,
            content=model.content,
            category=model.category,
            tags=list(model.tags or []),
            is_featured=bool(model.is_featured),
            order_index=model.order_index or 0,
            author_id=model.author_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            author=to_summary(model.author),
        )

    def _select(self):
        return select(KnowledgeArticleModel).options(selectinload(KnowledgeArticleModel.author))

    async def get_by_id(self, article_id: int) -> Optional[KnowledgeArticle]:
        stmt = (
            self._select()
            .where(KnowledgeArticleModel.id == article_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_filtered(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[KnowledgeArticle]:
        stmt = self._select()
        if category:
            stmt = stmt.where(KnowledgeArticleModel.category == category)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    KnowledgeArticleModel.title.ilike(pattern),
                    KnowledgeArticleModel.content.ilike(pattern),
                )
            )
        stmt = (
            stmt.order_by(KnowledgeArticleModel.created_at.desc(), KnowledgeArticleModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_featured(self, limit: int = 10) -> Sequence[KnowledgeArticle]:
        stmt = (
            self._select()
            .where(KnowledgeArticleModel.is_featured.is_(True))
            .order_by(KnowledgeArticleModel.order_index.asc(), KnowledgeArticleModel.id.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, article: KnowledgeArticle) -> KnowledgeArticle:
        model = KnowledgeArticleModel(
            title=article.title,
            content=article.content,
            category=article.category,
            tags=list(article.tags),
            is_featured=article.is_featured,
            order_index=article.order_index,
            author_id=article.author_id,
            created_at=article.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return await self.get_by_id(model.id)

    async def update(self, article: KnowledgeArticle) -> KnowledgeArticle:
        model = await self._session.get(KnowledgeArticleModel, article.id)
        if not model:
            raise NotFoundError("Artigo", article.id)
        model.title = article.title
        model.content = article.content
        model.category = article.category
        model.tags = list(article.tags)
        model.is_featured = article.is_featured
        model.order_index = article.order_index
        await self._session.flush()
        return await self.get_by_id(model.id)
