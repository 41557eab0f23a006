from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .entity import KnowledgeArticle


class IKnowledgeRepository(ABC):

    @abstractmethod
    async def get_by_id(self, article_id: int) -> Optional[KnowledgeArticle]:
        ...

    @abstractmethod
    async def list_filtered(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[KnowledgeArticle]:
        ...

    @abstractmethod
    async def list_featured(self, limit: int = 10) -> Sequence[KnowledgeArticle]:
        ...

    @abstractmethod
    async def create(self, article: KnowledgeArticle) -> KnowledgeArticle:
        ...

    @abstractmethod
    async def update(self, article: KnowledgeArticle) -> KnowledgeArticle:
        ...
