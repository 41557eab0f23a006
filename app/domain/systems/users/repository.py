"""Interface (porta) do repositório de Users — camada de domínio."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .entity import User, UserStatus


class IUserRepository(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def list_filtered(
        self,
        *,
        search: Optional[str] = None,
        market: Optional[str] = None,
        status: Optional[UserStatus] = None,
    ) -> Sequence[User]:
        ...

    @abstractmethod
    async def create(self, user: User) -> User:
        ...

    @abstractmethod
    async def update(self, user: User) -> User:
        ...
