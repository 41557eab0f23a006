"""
Schemas Pydantic — camada de Apresentação.

Inclui: DTOs de request/response, paginação, resultado de mutação
(degraded/warnings), mensagens do canal ao vivo e error model para OpenAPI.

Status, prioridade e role chegam como texto livre; a validação do valor
acontece no domínio (ValidationError → 400 com `field`).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field


# ════════════════════════════════════════════════════════════════
# GENERICS — Pagination wrapper
# ════════════════════════════════════════════════════════════════
T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope de paginação genérico."""
    items: list[T]
    total: int
    page: int
    page_size: int
    pages: int

    model_config = {"from_attributes": True}


# ════════════════════════════════════════════════════════════════
# ERROR MODEL (para Swagger docs)
# ════════════════════════════════════════════════════════════════
class ErrorResponse(BaseModel):
    error: str = Field(..., examples=["validation_error"])
    detail: str = Field(..., examples=["Título é obrigatório"])
    field: Optional[str] = None
    retryable: Optional[bool] = None
    request_id: Optional[str] = None

    model_config = {"json_schema_extra": {"example": {"error": "not_found", "detail": "Ticket 42 não encontrado", "request_id": "a1b2c3d4"}}}


# ════════════════════════════════════════════════════════════════
# USERS
# ════════════════════════════════════════════════════════════════
class PersonOut(BaseModel):
    """Informação de exibição de criador, responsável, autor ou ator."""
    id: int
    full_name: Optional[str] = None
    email: str

    model_config = {"from_attributes": True}


class UserRegister(BaseModel):
    email: str = Field(..., max_length=255, examples=["joao@empresa.com"])
    password: str = Field(..., min_length=8, examples=["senhaForte123"])
    full_name: Optional[str] = Field(None, max_length=255, examples=["João Silva"])
    department: Optional[str] = Field(None, max_length=150, examples=["Financeiro"])
    market: Optional[str] = Field(None, max_length=100, examples=["BR"])


class UserCreate(UserRegister):
    role: str = Field(default="user", examples=["support"])
    status: str = Field(default="active", examples=["active"])

    model_config = {"json_schema_extra": {"example": {"email": "ana@empresa.com", "password": "senhaForte123", "full_name": "Ana Souza", "department": "TI", "market": "BR", "role": "support", "status": "active"}}}


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=150)
    market: Optional[str] = Field(None, max_length=100)
    role: Optional[str] = None
    status: Optional[str] = None


class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: str
    department: Optional[str] = None
    market: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ════════════════════════════════════════════════════════════════
# AUTH / JWT
# ════════════════════════════════════════════════════════════════
class LoginRequest(BaseModel):
    email: str = Field(..., examples=["joao@empresa.com"])
    password: str = Field(..., examples=["senhaForte123"])


class TokenOut(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: int = Field(default=3600, description="Segundos até expiração")


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


# ════════════════════════════════════════════════════════════════
# TICKETS
# ════════════════════════════════════════════════════════════════
class TicketCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=255, examples=["Notebook não liga"])
    description: Optional[str] = Field(None, examples=["Desde ontem o notebook não liga, nem na tomada"])
    priority: Optional[str] = Field(None, examples=["high"])
    category: Optional[str] = Field(None, max_length=100, examples=["hardware"])
    asset_id: Optional[str] = Field(None, max_length=100, examples=["NB-0042"])

    model_config = {"json_schema_extra": {"example": {"title": "Notebook não liga", "description": "Desde ontem o notebook não liga", "priority": "high", "category": "hardware", "asset_id": "NB-0042"}}}


class StatusChangeRequest(BaseModel):
    status: str = Field(..., examples=["in_progress"])


class AssignTicketRequest(BaseModel):
    assigned_to: Optional[int] = Field(None, description="ID do admin/support; null remove a atribuição")


class CommentCreate(BaseModel):
    content: Optional[str] = Field(None, examples=["Já tentei reiniciar, sem sucesso."])


class TicketOut(BaseModel):
    id: int
    title: str
    description: str
    status: str
    priority: str
    category: str
    created_by: Optional[int]
    assigned_to: Optional[int]
    asset_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    creator: Optional[PersonOut] = None
    assignee: Optional[PersonOut] = None

    model_config = {"from_attributes": True}


class CommentOut(BaseModel):
    id: int
    ticket_id: int
    user_id: Optional[int]
    content: str
    created_at: Optional[datetime] = None
    author: Optional[PersonOut] = None

    model_config = {"from_attributes": True}


class HistoryOut(BaseModel):
    id: int
    ticket_id: int
    user_id: Optional[int]
    action: str
    details: str
    created_at: Optional[datetime] = None
    actor: Optional[PersonOut] = None

    model_config = {"from_attributes": True}


class TicketDetailOut(BaseModel):
    ticket: TicketOut
    comments: list[CommentOut]
    history: list[HistoryOut]

    model_config = {"from_attributes": True}


class MutationOut(BaseModel, Generic[T]):
    """
    Resultado de mutação. `degraded=true` indica que a alteração foi
    gravada mas o histórico correspondente não.
    """
    data: T
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)


# ════════════════════════════════════════════════════════════════
# LIVE UPDATES (WebSocket)
# ════════════════════════════════════════════════════════════════
class LiveMessage(BaseModel):
    type: str = Field(..., examples=["ticket_changed", "comment_inserted", "channel_closed"])
    ticket_id: int
    record: Optional[dict[str, Any]] = None
    detail: Optional[str] = None


# ════════════════════════════════════════════════════════════════
# KNOWLEDGE BASE
# ════════════════════════════════════════════════════════════════
class ArticleCreate(BaseModel):
    title: str = Field(..., max_length=255, examples=["Como conectar na VPN"])
    content: str = Field(..., examples=["1. Abra o cliente VPN..."])
    category: str = Field(..., max_length=100, examples=["network"])
    tags: list[str] = Field(default_factory=list, examples=[["vpn", "acesso remoto"]])
    is_featured: bool = False
    order_index: int = 0


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[list[str]] = None
    is_featured: Optional[bool] = None
    order_index: Optional[int] = None


class ArticleOut(BaseModel):
    id: int
    title: str
    content: str
    category: str
    tags: list[str]
    is_featured: bool
    order_index: int
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ════════════════════════════════════════════════════════════════
# PORTAL SETTINGS / DASHBOARD
# ════════════════════════════════════════════════════════════════
class SettingsUpdate(BaseModel):
    portal_name: str = Field(..., max_length=255, examples=["Portal de Suporte TI"])
    company_logo: str = ""
    primary_color: str = Field(default="#2563eb", max_length=20)
    enable_notifications: bool = True
    ticket_categories: list[str] = Field(default_factory=list)
    asset_types: list[str] = Field(default_factory=list)
    auto_assignment: bool = False
    sla_hours: int = Field(default=24, examples=[24])


class SettingsOut(BaseModel):
    portal_name: str
    company_logo: str
    primary_color: str
    enable_notifications: bool
    ticket_categories: list[str]
    asset_types: list[str]
    auto_assignment: bool
    sla_hours: int
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DashboardStatsOut(BaseModel):
    total_tickets: int
    open_tickets: int
    resolved_today: int
    critical_open: int
    total_users: int
    recent_tickets: list[TicketOut]

    model_config = {"from_attributes": True}
