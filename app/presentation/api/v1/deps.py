"""
Dependências de autenticação JWT, RBAC e factories de DI.

Inclui: access token, refresh token, active-user guard, repositórios
ligados à sessão do request e o use case de detalhe do ticket, que abre
sessões independentes para carregar ticket, comentários e histórico em
paralelo.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.infrastructure.config import get_settings
from app.infrastructure.database import get_db, get_session_factory
from app.infrastructure.realtime.change_feed import get_change_feed
from app.infrastructure.systems.users.repository import UserRepository
from app.infrastructure.systems.tickets.repository import TicketRepository
from app.infrastructure.systems.tickets.comment_repository import CommentRepository
from app.infrastructure.systems.tickets.history_repository import HistoryRepository
from app.infrastructure.systems.knowledge.repository import KnowledgeRepository
from app.infrastructure.systems.settings.repository import SettingsRepository
from app.domain.systems.users.entity import User
from app.application.shared.unit_of_work import UnitOfWork
from app.application.systems.tickets.live_updates import LiveUpdateChannel
from app.application.systems.tickets.use_cases import AuditTrail, GetTicketDetailUseCase

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Token inválido ou expirado",
    headers={"WWW-Authenticate": "Bearer"},
)


# ════════════════════════════════════════════════════════════════
# PASSWORD
# ════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ════════════════════════════════════════════════════════════════
# JWT — Access + Refresh tokens
# ════════════════════════════════════════════════════════════════

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decodifica e valida um token JWT. Raises JWTError."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def user_id_from_token(token: Optional[str], expected_type: str = "access") -> Optional[int]:
    """`sub` do token, ou None se inválido, expirado ou de outro tipo."""
    if not token:
        return None
    try:
        payload = decode_token(token)
        if payload.get("type") != expected_type:
            return None
        return int(payload.get("sub", 0)) or None
    except (JWTError, ValueError):
        return None


# ════════════════════════════════════════════════════════════════
# FASTAPI DEPENDENCIES
# ════════════════════════════════════════════════════════════════

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extrai e valida o usuário do access token."""
    user_id = user_id_from_token(token)
    if not user_id:
        raise credentials_exception

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Garante que o usuário está ativo (pending/inactive não acessam)."""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Usuário {current_user.status.value}",
        )
    return current_user


def require_roles(*roles: str):
    """Dependency factory para RBAC baseado em roles."""
    async def _check(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role.value not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requer role: {', '.join(roles)}",
            )
        return current_user
    return _check


# ════════════════════════════════════════════════════════════════
# DI FACTORIES — Repositórios e UoW
# ════════════════════════════════════════════════════════════════

def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_ticket_repo(db: AsyncSession = Depends(get_db)) -> TicketRepository:
    return TicketRepository(db)


def get_comment_repo(db: AsyncSession = Depends(get_db)) -> CommentRepository:
    return CommentRepository(db)


def get_history_repo(db: AsyncSession = Depends(get_db)) -> HistoryRepository:
    return HistoryRepository(db)


def get_audit_trail(
    history: HistoryRepository = Depends(get_history_repo),
    uow: UnitOfWork = Depends(get_uow),
) -> AuditTrail:
    return AuditTrail(history, uow)


def get_knowledge_repo(db: AsyncSession = Depends(get_db)) -> KnowledgeRepository:
    return KnowledgeRepository(db)


def get_settings_repo(db: AsyncSession = Depends(get_db)) -> SettingsRepository:
    return SettingsRepository(db)


async def get_ticket_detail_use_case(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncIterator[GetTicketDetailUseCase]:
    """Uma sessão por leitura concorrente; todas fechadas ao fim do request."""
    async with factory() as s_ticket, factory() as s_comments, factory() as s_history:
        yield GetTicketDetailUseCase(
            TicketRepository(s_ticket),
            CommentRepository(s_comments),
            HistoryRepository(s_history),
        )


def get_live_channel() -> LiveUpdateChannel:
    return LiveUpdateChannel(get_change_feed())
