import pytest
from decimal import Decimal
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from main import app
from app.core.database import get_async_session
from app.models import Base, Category, Item
from app.models.shared.enums import UnitType

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BUSINESS_ID = 1
OTHER_BUSINESS_ID = 2
USER_ID = 7

@pytest.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()

@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session

@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client bound to the per-test database"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
def tenant_headers() -> dict:
    return {"X-Business-Id": str(BUSINESS_ID), "X-User-Id": str(USER_ID)}

@pytest.fixture
async def category(db: AsyncSession) -> Category:
    category = Category(business_id=BUSINESS_ID, name="Produce")
    db.add(category)
    await db.commit()
    return category

@pytest.fixture
def make_item(db: AsyncSession, category: Category):
    """Insert a catalog row directly, bypassing ItemService validation"""
    async def factory(name, sell_price="0", parent=None, variant_name=None, business_id=BUSINESS_ID):
        item = Item(
            business_id=business_id,
            category_id=category.id,
            parent=parent,
            name=name,
            variant_name=variant_name,
            unit_type=UnitType.KG,
            current_stock=Decimal("0"),
            current_sell_price=Decimal(sell_price),
            active=True,
        )
        db.add(item)
        await db.commit()
        return item

    return factory
