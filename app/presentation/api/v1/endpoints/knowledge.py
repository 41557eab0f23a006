"""
Endpoints da base de conhecimento — /api/v1/knowledge

Leitura para qualquer usuário autenticado, destaque público para a tela
de login, escrita para admin/support.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.domain.systems.users.entity import User
from app.infrastructure.systems.knowledge.repository import KnowledgeRepository
from app.application.shared.unit_of_work import UnitOfWork
from app.application.dtos.knowledge_dtos import (
    CreateArticleCommand,
    ListArticlesQuery,
    UpdateArticleCommand,
)
from app.application.systems.knowledge.use_cases import (
    CreateArticleUseCase,
    GetArticleUseCase,
    ListArticlesUseCase,
    ListFeaturedArticlesUseCase,
    UpdateArticleUseCase,
)
from app.presentation.api.v1.schemas import ArticleCreate, ArticleOut, ArticleUpdate
from app.presentation.api.v1.deps import get_current_active_user, get_knowledge_repo, get_uow

router = APIRouter()


@router.get(
    "/",
    response_model=list[ArticleOut],
    summary="Listar artigos",
    description="Filtros opcionais: category e search (título e conteúdo).",
)
async def list_articles(
    category: Optional[str] = Query(default=None, max_length=100),
    search: Optional[str] = Query(default=None, max_length=255),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    repo: KnowledgeRepository = Depends(get_knowledge_repo),
    _user: User = Depends(get_current_active_user),
):
    results = await ListArticlesUseCase(repo).execute(
        ListArticlesQuery(category=category, search=search, skip=skip, limit=limit)
    )
    return [ArticleOut.model_validate(a) for a in results]


@router.get(
    "/featured",
    response_model=list[ArticleOut],
    summary="Artigos em destaque (público)",
)
async def list_featured(
    limit: int = Query(default=10, ge=1, le=50),
    repo: KnowledgeRepository = Depends(get_knowledge_repo),
):
    results = await ListFeaturedArticlesUseCase(repo).execute(limit)
    return [ArticleOut.model_validate(a) for a in results]


@router.get("/{article_id}", response_model=ArticleOut, summary="Buscar artigo")
async def get_article(
    article_id: int,
    repo: KnowledgeRepository = Depends(get_knowledge_repo),
    _user: User = Depends(get_current_active_user),
):
    return ArticleOut.model_validate(await GetArticleUseCase(repo).execute(article_id))


@router.post(
    "/",
    response_model=ArticleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Criar artigo (admin/support)",
)
async def create_article(
    payload: ArticleCreate,
    repo: KnowledgeRepository = Depends(get_knowledge_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = CreateArticleUseCase(repo, uow)
    result = await uc.execute(CreateArticleCommand(**payload.model_dump()), actor=current_user)
    return ArticleOut.model_validate(result)


@router.patch("/{article_id}", response_model=ArticleOut, summary="Atualizar artigo (admin/support)")
async def update_article(
    article_id: int,
    payload: ArticleUpdate,
    repo: KnowledgeRepository = Depends(get_knowledge_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = UpdateArticleUseCase(repo, uow)
    result = await uc.execute(
        UpdateArticleCommand(article_id=article_id, **payload.model_dump(exclude_unset=True)),
        actor=current_user,
    )
    return ArticleOut.model_validate(result)
