"""Entidade de domínio User — identidade projetada no portal, com RBAC e eventos."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.domain.events.base import AggregateRoot, utcnow
from app.domain.events.user_events import (
    UserCreated,
    UserRoleChanged,
    UserStatusChanged,
    UserUpdated,
)
from app.domain.shared.errors import ValidationError


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SUPPORT = "support"
    USER = "user"

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Role inválida: {value}", field="role") from None


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: str) -> "UserStatus":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Status de usuário inválido: {value}", field="status") from None


# Roles que podem receber tickets e operar o ciclo de vida
STAFF_ROLES = (UserRole.ADMIN, UserRole.SUPPORT)


@dataclass(frozen=True)
class UserSummary:
    """Informação de exibição de um usuário referenciado (criador, autor, ator)."""
    id: int
    full_name: Optional[str] = None
    email: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass
class User(AggregateRoot):
    id: Optional[int] = None
    email: str = ""
    full_name: Optional[str] = None
    hashed_password: str = ""
    role: UserRole = UserRole.USER
    department: Optional[str] = None
    market: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        AggregateRoot.__init__(self)

    # ── Regras de negócio ──

    def change_role(self, new_role: UserRole, performed_by: int) -> None:
        old_role = self.role
        if old_role == new_role:
            return
        self.role = new_role
        self.updated_at = utcnow()
        self._record_event(UserRoleChanged(
            user_id=self.id,
            old_role=old_role.value,
            new_role=new_role.value,
            performed_by=performed_by,
        ))

    def change_status(self, new_status: UserStatus, performed_by: int) -> None:
        old_status = self.status
        if old_status == new_status:
            return
        self.status = new_status
        self.updated_at = utcnow()
        self._record_event(UserStatusChanged(
            user_id=self.id,
            old_status=old_status.value,
            new_status=new_status.value,
            performed_by=performed_by,
        ))

    def record_creation(self, created_by: Optional[int] = None) -> None:
        self._record_event(UserCreated(
            user_id=self.id,
            email=self.email,
            role=self.role.value,
            created_by=created_by,
        ))

    def record_update(self, changed_fields: dict, performed_by: Optional[int] = None) -> None:
        self._record_event(UserUpdated(
            user_id=self.id,
            changed_fields=changed_fields,
            performed_by=performed_by,
        ))

    # ── Projeção ──

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_summary(self) -> UserSummary:
        return UserSummary(id=self.id, full_name=self.full_name, email=self.email)

    # ── RBAC helpers ──

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def can_manage_users(self) -> bool:
        return self.is_admin()

    def can_manage_tickets(self) -> bool:
        return self.is_staff()
