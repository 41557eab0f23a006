from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entity import PortalSettings


class ISettingsRepository(ABC):

    @abstractmethod
    async def get(self) -> Optional[PortalSettings]:
        ...

    @abstractmethod
    async def upsert(self, settings: PortalSettings) -> PortalSettings:
        ...
