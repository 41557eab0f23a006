"""DTOs da base de conhecimento."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CreateArticleCommand:
    title: str
    content: str
    category: str
    tags: list[str] = field(default_factory=list)
    is_featured: bool = False
    order_index: int = 0


@dataclass(frozen=True)
class UpdateArticleCommand:
    article_id: int
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    is_featured: Optional[bool] = None
    order_index: Optional[int] = None


@dataclass(frozen=True)
class ListArticlesQuery:
    category: Optional[str] = None
    search: Optional[str] = None
    skip: int = 0
    limit: int = 100


@dataclass
class ArticleResult:
    id: int
    title: str
    content: str
    category: str
    tags: list[str]
    is_featured: bool
    order_index: int
    author_id: Optional[int]
    author_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
