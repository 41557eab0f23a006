"""
Fixtures de teste — client HTTP + banco SQLite.

Usa SQLite async para testes rápidos sem Docker. O lifespan da app não
roda sob ASGITransport, então os handlers de eventos pós-commit são
registrados aqui e o change feed é recriado a cada teste. Os testes do
WebSocket usam o TestClient do Starlette, que roda o lifespan.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from passlib.context import CryptContext

from app.infrastructure.database.session import Base, get_db, get_session_factory
from app.infrastructure.realtime.change_feed import get_change_feed
from app.application.shared.event_dispatcher import clear_handlers
from app.application.shared.event_handlers import register_all_handlers
from app.main import app
from app.infrastructure.systems.users.repository import UserRepository
from app.domain.systems.users.entity import User, UserRole, UserStatus

# ── SQLite async para testes ──
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

# Sem pool: os testes de WebSocket usam o loop próprio do TestClient
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEFAULT_PASSWORD = "senha12345"


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def override_get_session_factory() -> async_sessionmaker[AsyncSession]:
    return TestSessionLocal


# Override dependencies
app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_session_factory] = override_get_session_factory

# Disable rate limiting for tests
from app.presentation.api.v1.endpoints.auth import login_limiter, register_limiter
async def no_op_limiter(): pass
app.dependency_overrides[login_limiter] = no_op_limiter
app.dependency_overrides[register_limiter] = no_op_limiter


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Cria/destrói tabelas antes/depois de cada teste."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def live_feed():
    """Feed novo e handlers pós-commit registrados para cada teste."""
    get_change_feed.cache_clear()
    clear_handlers()
    register_all_handlers()
    feed = get_change_feed()
    yield feed
    feed.close()
    clear_handlers()
    get_change_feed.cache_clear()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def create_user(
    email: str,
    role: UserRole = UserRole.USER,
    status: UserStatus = UserStatus.ACTIVE,
    full_name: Optional[str] = None,
    market: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
) -> User:
    """Cria usuário direto no banco (sem passar pela API)."""
    async with TestSessionLocal() as session:
        created = await UserRepository(session).create(User(
            email=email,
            full_name=full_name,
            hashed_password=pwd_context.hash(password),
            role=role,
            status=status,
            market=market,
        ))
        await session.commit()
        return created


async def login(client: AsyncClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest_asyncio.fixture
async def admin_user() -> User:
    return await create_user("admin@test.com", UserRole.ADMIN, full_name="Admin Teste")


@pytest_asyncio.fixture
async def support_user() -> User:
    return await create_user("suporte@test.com", UserRole.SUPPORT, full_name="Suporte Teste")


@pytest_asyncio.fixture
async def regular_user() -> User:
    return await create_user("user@test.com", UserRole.USER, full_name="Usuário Teste", market="BR")


@pytest_asyncio.fixture
async def admin_token(client: AsyncClient, admin_user: User) -> str:
    return await login(client, admin_user.email)


@pytest_asyncio.fixture
async def support_token(client: AsyncClient, support_user: User) -> str:
    return await login(client, support_user.email)


@pytest_asyncio.fixture
async def user_token(client: AsyncClient, regular_user: User) -> str:
    return await login(client, regular_user.email)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def open_ticket(client: AsyncClient, token: str, **overrides) -> dict:
    payload = {
        "title": "Impressora parada",
        "description": "Sem toner",
        "priority": "high",
        "category": "hardware",
    }
    payload.update(overrides)
    resp = await client.post("/api/v1/tickets/", json=payload, headers=auth_header(token))
    assert resp.status_code == 201, resp.text
    return resp.json()
