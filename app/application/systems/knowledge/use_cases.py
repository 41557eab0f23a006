"""Use Cases da base de conhecimento."""

from __future__ import annotations

from app.domain.shared.errors import NotFoundError
from app.domain.systems.knowledge.entity import KnowledgeArticle
from app.domain.systems.knowledge.repository import IKnowledgeRepository
from app.domain.systems.users.entity import User
from app.domain.systems.users.authorization_service import AuthorizationService
from app.application.dtos.knowledge_dtos import (
    ArticleResult,
    CreateArticleCommand,
    ListArticlesQuery,
    UpdateArticleCommand,
)
from app.application.shared.unit_of_work import UnitOfWork

FEATURED_LIMIT = 10


def _to_result(a: KnowledgeArticle) -> ArticleResult:
    return ArticleResult(
        id=a.id,
        title=a.title,
        content=a.content,
        category=a.category,
        tags=list(a.tags),
        is_featured=a.is_featured,
        order_index=a.order_index,
        author_id=a.author_id,
        author_name=a.author.display_name if a.author else None,
        created_at=a.created_at.isoformat() if a.created_at else None,
        updated_at=a.updated_at.isoformat() if a.updated_at else None,
    )


class ListArticlesUseCase:
    def __init__(self, repo: IKnowledgeRepository) -> None:
        self._repo = repo

    async def execute(self, query: ListArticlesQuery) -> list[ArticleResult]:
        articles = await self._repo.list_filtered(
            category=query.category or None,
            search=(query.search or "").strip() or None,
            skip=query.skip,
            limit=query.limit,
        )
        return [_to_result(a) for a in articles]


class ListFeaturedArticlesUseCase:
    """Artigos em destaque para a ajuda da tela de login (público)."""

    def __init__(self, repo: IKnowledgeRepository) -> None:
        self._repo = repo

    async def execute(self, limit: int = FEATURED_LIMIT) -> list[ArticleResult]:
        return [_to_result(a) for a in await self._repo.list_featured(limit)]


class GetArticleUseCase:
    def __init__(self, repo: IKnowledgeRepository) -> None:
        self._repo = repo

    async def execute(self, article_id: int) -> ArticleResult:
        article = await self._repo.get_by_id(article_id)
        if not article:
            raise NotFoundError("Artigo", article_id)
        return _to_result(article)


class CreateArticleUseCase:
    def __init__(self, repo: IKnowledgeRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def execute(self, cmd: CreateArticleCommand, actor: User) -> ArticleResult:
        AuthorizationService.ensure_can_edit_knowledge(actor)
        article = KnowledgeArticle(
            title=(cmd.title or "").strip(),
            content=cmd.content or "",
            category=(cmd.category or "").strip(),
            tags=list(cmd.tags),
            is_featured=cmd.is_featured,
            order_index=cmd.order_index,
            author_id=actor.id,
        )
        article.validate()
        created = await self._repo.create(article)
        await self._uow.commit()
        return _to_result(created)


class UpdateArticleUseCase:
    def __init__(self, repo: IKnowledgeRepository, uow: UnitOfWork) -> None:
        self._repo = repo
        self._uow = uow

    async def execute(self, cmd: UpdateArticleCommand, actor: User) -> ArticleResult:
        AuthorizationService.ensure_can_edit_knowledge(actor)
        article = await self._repo.get_by_id(cmd.article_id)
        if not article:
            raise NotFoundError("Artigo", cmd.article_id)

        for name in ("title", "content", "category", "tags", "is_featured", "order_index"):
            value = getattr(cmd, name)
            if value is not None:
                setattr(article, name, list(value) if name == "tags" else value)
        article.validate()

        updated = await self._repo.update(article)
        await self._uow.commit()
        return _to_result(updated)
