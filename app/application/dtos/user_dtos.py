"""DTOs da camada de aplicação para Users — commands e queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# ════════════════════════════════════════════════════════════════
# COMMANDS (escrita)
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RegisterUserCommand:
    email: str
    password: str
    full_name: Optional[str] = None
    department: Optional[str] = None
    market: Optional[str] = None


@dataclass(frozen=True)
class CreateUserCommand:
    """Criação pelo admin — pode definir role e status."""
    email: str
    password: str
    full_name: Optional[str] = None
    department: Optional[str] = None
    market: Optional[str] = None
    role: str = "user"
    status: str = "active"


@dataclass(frozen=True)
class UpdateUserCommand:
    user_id: int
    full_name: Optional[str] = None
    department: Optional[str] = None
    market: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class ChangePasswordCommand:
    current_password: str
    new_password: str


@dataclass(frozen=True)
class LoginCommand:
    email: str
    password: str


# ════════════════════════════════════════════════════════════════
# QUERIES (leitura)
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GetUserByIdQuery:
    user_id: int


@dataclass(frozen=True)
class ListUsersQuery:
    search: Optional[str] = None
    market: Optional[str] = None
    status: Optional[str] = None


# ════════════════════════════════════════════════════════════════
# RESULT DTOs
# ════════════════════════════════════════════════════════════════

@dataclass
class UserResult:
    id: int
    email: str
    full_name: Optional[str]
    role: str
    department: Optional[str]
    market: Optional[str]
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TokenResult:
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
