"""
Seed script — cria o admin inicial e a configuração padrão do portal.

Uso:
    python -m app.seed

Idempotente: não recria o que já existe.
"""

import asyncio

from passlib.context import CryptContext

from app.infrastructure.config import get_settings
from app.infrastructure.database.session import AsyncSessionLocal
from app.infrastructure.systems.users.repository import UserRepository
from app.infrastructure.systems.settings.repository import SettingsRepository
from app.domain.systems.settings.entity import PortalSettings
from app.domain.systems.users.entity import User, UserRole, UserStatus

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
settings = get_settings()

ADMIN_EMAIL = "admin@local.dev"
ADMIN_NAME = "Administrador"
ADMIN_PASSWORD = "admin12345"  # Trocar em produção!


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        users = UserRepository(session)
        portal = SettingsRepository(session)

        existing = await users.get_by_email(ADMIN_EMAIL)
        if existing:
            print(f"ℹ️  Admin '{ADMIN_EMAIL}' já existe (id={existing.id}).")
        else:
            created = await users.create(User(
                email=ADMIN_EMAIL,
                full_name=ADMIN_NAME,
                hashed_password=pwd_context.hash(ADMIN_PASSWORD),
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
            ))
            print(f"✅ Admin criado:")
            print(f"   Email:    {ADMIN_EMAIL}")
            print(f"   Senha:    {ADMIN_PASSWORD}")
            print(f"   ID:       {created.id}")
            print(f"\n⚠️  Troque a senha em produção!")

        if await portal.get() is None:
            await portal.upsert(PortalSettings(ticket_categories=list(settings.TICKET_CATEGORIES)))
            print("✅ Configuração padrão do portal criada")

        await session.commit()


def main():
    asyncio.run(seed())


if __name__ == "__main__":
    main()
