"""DTOs da configuração do portal e do dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from app.application.dtos.ticket_dtos import TicketResult


@dataclass(frozen=True)
class UpdateSettingsCommand:
    portal_name: str
    company_logo: str = ""
    primary_color: str = "#2563eb"
    enable_notifications: bool = True
    ticket_categories: list[str] = field(default_factory=list)
    asset_types: list[str] = field(default_factory=list)
    auto_assignment: bool = False
    sla_hours: int = 24


@dataclass
class SettingsResult:
    portal_name: str
    company_logo: str
    primary_color: str
    enable_notifications: bool
    ticket_categories: list[str]
    asset_types: list[str]
    auto_assignment: bool
    sla_hours: int
    updated_by: Optional[int] = None
    updated_at: Optional[str] = None


@dataclass
class DashboardStatsResult:
    total_tickets: int
    open_tickets: int
    resolved_today: int
    critical_open: int
    total_users: int
    recent_tickets: list[TicketResult] = field(default_factory=list)
