"""Value Objects do domínio — imutáveis, comparados por valor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.domain.shared.errors import ValidationError


@dataclass(frozen=True)
class TicketFilter:
    """
    Critérios de listagem de tickets (dashboards e páginas de lista).

    Todos os critérios informados precisam bater; `market` filtra pelo
    mercado do criador e é repassado sem outra lógica.
    """
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    market: Optional[str] = None
    created_by: Optional[int] = None
    assigned_to: Optional[int] = None
    search: Optional[str] = None
    ascending: bool = False
    skip: int = 0
    limit: int = 100

    def __post_init__(self):
        if self.skip < 0:
            raise ValidationError("skip não pode ser negativo", field="skip")
        if self.limit < 1:
            raise ValidationError("limit deve ser positivo", field="limit")


@dataclass(frozen=True)
class Email:
    """Value object para email validado."""
    address: str

    def __post_init__(self):
        if not self.address or "@" not in self.address:
            raise ValidationError(f"Email inválido: {self.address}", field="email")
        object.__setattr__(self, "address", self.address.strip().lower())
