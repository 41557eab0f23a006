"""Entidade KnowledgeArticle — artigos da base de conhecimento e da ajuda do login."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.domain.events.base import utcnow
from app.domain.shared.errors import ValidationError
from app.domain.systems.users.entity import UserSummary


@dataclass
class KnowledgeArticle:
    id: Optional[int] = None
    title: str = ""
    content: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    is_featured: bool = False
    order_index: int = 0
    author_id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None

    def validate(self) -> None:
        for name, label in (("title", "Título"), ("content", "Conteúdo"), ("category", "Categoria")):
            if not getattr(self, name, "").strip():
                raise ValidationError(f"{label} é obrigatório", field=name)
        # Tags normalizadas: sem vazios, sem repetição
        seen: list[str] = []
        for tag in self.tags:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        self.tags = seen
