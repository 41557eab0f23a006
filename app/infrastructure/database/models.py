"""
Modelos SQLAlchemy — camada de Infraestrutura.

Tabelas:
  - users               (perfil + RBAC: admin/support/user)
  - tickets             (status, prioridade, categoria, criador, responsável)
  - ticket_comments     (comentários append-only)
  - ticket_history      (eventos de auditoria append-only)
  - knowledge_articles  (base de conhecimento + ajuda do login)
  - portal_settings     (configuração do portal, linha única)
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    JSON,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.infrastructure.database.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ────────────────────────────────────────────────────────────────
# USERS
# ────────────────────────────────────────────────────────────────
class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(Text, nullable=False)
    role = Column(
        String(20),
        nullable=False,
        server_default="user",
        index=True,
    )
    department = Column(String(150), nullable=True)
    market = Column(String(100), nullable=True, index=True)
    status = Column(String(20), nullable=False, server_default="active", index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relações
    tickets_created = relationship(
        "TicketModel", back_populates="creator", foreign_keys="TicketModel.created_by"
    )
    tickets_assigned = relationship(
        "TicketModel", back_populates="assignee", foreign_keys="TicketModel.assigned_to"
    )


# ────────────────────────────────────────────────────────────────
# TICKETS
# ────────────────────────────────────────────────────────────────
class TicketModel(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(
        String(20),
        nullable=False,
        server_default="open",
        index=True,
    )
    priority = Column(String(20), nullable=False, server_default="medium", index=True)
    category = Column(String(100), nullable=False, index=True)
    asset_id = Column(String(100), nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    creator = relationship("UserModel", back_populates="tickets_created", foreign_keys=[created_by])
    assignee = relationship("UserModel", back_populates="tickets_assigned", foreign_keys=[assigned_to])

    comments = relationship(
        "TicketCommentModel",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketCommentModel.created_at",
    )
    history = relationship(
        "TicketHistoryModel",
        back_populates="ticket",
        cascade="all, delete-orphan",
    )


# ────────────────────────────────────────────────────────────────
# TICKET COMMENTS
# ────────────────────────────────────────────────────────────────
class TicketCommentModel(Base):
    __tablename__ = "ticket_comments"

    __table_args__ = (
        Index("ix_ticket_comments_ticket_id_created_at", "ticket_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(
        Integer,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    ticket = relationship("TicketModel", back_populates="comments")
    user = relationship("UserModel")


# ────────────────────────────────────────────────────────────────
# TICKET HISTORY — auditoria do ciclo de vida
# ────────────────────────────────────────────────────────────────
class TicketHistoryModel(Base):
    __tablename__ = "ticket_history"

    __table_args__ = (
        Index("ix_ticket_history_ticket_id_created_at", "ticket_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(
        Integer,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False)       # "comment", "status", "assign", ...
    details = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    ticket = relationship("TicketModel", back_populates="history")
    user = relationship("UserModel")


# ────────────────────────────────────────────────────────────────
# KNOWLEDGE BASE
# ────────────────────────────────────────────────────────────────
class KnowledgeArticleModel(Base):
    __tablename__ = "knowledge_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    tags = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    order_index = Column(Integer, nullable=False, default=0)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("UserModel")


# ────────────────────────────────────────────────────────────────
# PORTAL SETTINGS
# ────────────────────────────────────────────────────────────────
class PortalSettingsModel(Base):
    __tablename__ = "portal_settings"

    id = Column(Integer, primary_key=True)
    portal_name = Column(String(255), nullable=False)
    company_logo = Column(Text, nullable=False, default="")
    primary_color = Column(String(20), nullable=False, default="#2563eb")
    enable_notifications = Column(Boolean, nullable=False, default=True)
    ticket_categories = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    asset_types = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    auto_assignment = Column(Boolean, nullable=False, default=False)
    sla_hours = Column(Integer, nullable=False, default=24)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=func.now())
