"""Configuração do portal — linha única (id=1)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.domain.shared.errors import ValidationError

SETTINGS_ROW_ID = 1


@dataclass
class PortalSettings:
    portal_name: str = "Portal de Suporte TI"
    company_logo: str = ""
    primary_color: str = "#2563eb"
    enable_notifications: bool = True
    ticket_categories: list[str] = field(default_factory=list)
    asset_types: list[str] = field(default_factory=list)
    auto_assignment: bool = False
    sla_hours: int = 24
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> None:
        if not self.portal_name.strip():
            raise ValidationError("Nome do portal é obrigatório", field="portal_name")
        if self.sla_hours <= 0:
            raise ValidationError("sla_hours deve ser positivo", field="sla_hours")
        self.ticket_categories = [c.strip() for c in self.ticket_categories if c.strip()]
        self.asset_types = [a.strip() for a in self.asset_types if a.strip()]
