# tests/conftest.py
import os

# Antes de importar a aplicação: banco em memória e sessões em memória
os.environ["VITRINE_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("SESSION_STORAGE_PATH", None)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator, Optional

import vitrineturbo.models  # noqa: F401
from vitrineturbo.core import SessionRegistry, MemoryStorage, get_password_hash
from vitrineturbo.database import Base, get_db
from vitrineturbo.main import app
from vitrineturbo.models import User, Product

TEST_PASSWORD = "secret123"
# Hash calculado uma vez: bcrypt é lento
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


class FakeClock:
    """Relógio controlável para testes de expiração"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> SessionRegistry:
    return SessionRegistry(MemoryStorage(), clock=clock)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker, registry) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    previous_registry = app.state.registry
    app.dependency_overrides[get_db] = override_get_db
    app.state.registry = registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.registry = previous_registry


@pytest.fixture
def make_user(db_session):
    async def _make_user(
        email: str = "vendedor@example.com",
        role: str = "corretor",
        name: str = "Loja Teste",
        slug: Optional[str] = None,
        whatsapp: Optional[str] = None,
        is_blocked: bool = False,
        referred_by: Optional[str] = None,
        referral_code: Optional[str] = None,
        language: str = "pt-BR",
        currency: str = "BRL",
    ) -> User:
        user = User(
            email=email,
            hashed_password=TEST_PASSWORD_HASH,
            name=name,
            role=role,
            slug=slug,
            whatsapp=whatsapp,
            is_blocked=is_blocked,
            referred_by=referred_by,
            referral_code=referral_code,
            language=language,
            currency=currency,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_product(db_session):
    async def _make_product(user: User, title: str = "Camiseta", price: Optional[float] = 80.0, **kwargs) -> Product:
        product = Product(user_id=user.id, title=title, price=price, **kwargs)
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _make_product


@pytest.fixture
def login(client):
    """Faz login e devolve os headers Authorization"""
    async def _login(email: str, password: str = TEST_PASSWORD) -> dict:
        response = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['session_id']}"}

    return _login
