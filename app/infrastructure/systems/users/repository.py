"""Implementação concreta do repositório de Users — SQLAlchemy."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.shared.errors import NotFoundError
from app.domain.systems.users.entity import User, UserRole, UserStatus, UserSummary
from app.domain.systems.users.repository import IUserRepository
from app.infrastructure.database.models import UserModel


def to_summary(model: Optional[UserModel]) -> Optional[UserSummary]:
    """Projeção de exibição usada por tickets, comentários e histórico."""
    if model is None:
        return None
    return UserSummary(id=model.id, full_name=model.full_name, email=model.email)


class UserRepository(IUserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── Helpers de mapeamento ──
    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            full_name=model.full_name,
            hashed_password=model.hashed_password,
            role=UserRole(model.role),
            department=model.department,
            market=model.market,
            status=UserStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_model(entity: User) -> UserModel:
        return UserModel(
            id=entity.id,
            email=entity.email,
            full_name=entity.full_name,
            hashed_password=entity.hashed_password,
            role=entity.role.value,
            department=entity.department,
            market=entity.market,
            status=entity.status.value,
        )

    # ── Interface ──
    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self._session.get(UserModel, user_id)
        return self._to_entity(result) if result else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_filtered(
        self,
        *,
        search: Optional[str] = None,
        market: Optional[str] = None,
        status: Optional[UserStatus] = None,
    ) -> Sequence[User]:
        stmt = select(UserModel)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(UserModel.full_name.ilike(pattern), UserModel.email.ilike(pattern)))
        if market:
            stmt = stmt.where(UserModel.market == market)
        if status is not None:
            stmt = stmt.where(UserModel.status == status.value)
        stmt = stmt.order_by(UserModel.id)
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, user: User) -> User:
        model = self._to_model(user)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, user: User) -> User:
        model = await self._session.get(UserModel, user.id)
        if not model:
            raise NotFoundError("Usuário", user.id)
        model.email = user.email
        model.full_name = user.full_name
        model.hashed_password = user.hashed_password
        model.role = user.role.value
        model.department = user.department
        model.market = user.market
        model.status = user.status.value
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)
