import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_CREATION_SECRET", "bootstrap-secret")
os.environ["DB_TYPE"] = "sqlite"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pytest_unused.db")

from datetime import timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base, enable_sqlite_foreign_keys, get_db
from app.core.config import TOKEN_COOKIE_NAME
from app.core.security import create_access_token, hash_password
from app.models.catalog_models import Category, Product, Tag
from app.models.discount_models import Coupon, Discount
from app.models.user_models import User
from app.utils.date_filter import utcnow
from app.utils.media_upload import get_image_uploader
from main import app


class FakeImageHost:
    """Stands in for Cloudinary; hands out predictable URLs."""

    def __init__(self):
        self.uploads = []

    async def __call__(self, data: bytes) -> str:
        self.uploads.append(data)
        return f"https://images.test/{len(self.uploads)}.jpg"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def image_host():
    return FakeImageHost()


@pytest.fixture
async def client(session_factory, image_host):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_uploader] = lambda: image_host
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(session_factory, username: str, role: str, password: str = "secret123") -> User:
    async with session_factory() as session:
        user = User(username=username, password_hash=hash_password(password), role=role, is_active=True)
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def admin_user(session_factory):
    return await _make_user(session_factory, "admin", "admin")


@pytest.fixture
async def operator_user(session_factory):
    return await _make_user(session_factory, "operator", "operator")


def login_as(client: AsyncClient, user: User) -> AsyncClient:
    client.cookies.set(TOKEN_COOKIE_NAME, create_access_token({"id": user.id, "role": user.role}))
    return client


@pytest.fixture
def admin_client(client, admin_user):
    return login_as(client, admin_user)


@pytest.fixture
def operator_client(client, operator_user):
    return login_as(client, operator_user)


@pytest.fixture
async def catalog(session_factory):
    """
    Lighting (10% category discount): Lamp 100.00 x10, Bulb 20.00 x3.
    Furniture: Chair 50.00 x5 tagged "sale" (15% tag discount), Hidden (inactive).
    Coupon SAVE5 5% from 50.00, coupon BIG20 20% from 1000.00.
    """
    now = utcnow()
    window = {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=1)}
    async with session_factory() as session:
        lighting = Category(name="Lighting", description="Lamps and bulbs")
        furniture = Category(name="Furniture")
        sale = Tag(name="sale")
        lamp = Product(name="Lamp", description="Brass desk lamp", price=Decimal("100.00"), stock=10,
                       image_url="https://images.test/lamp.jpg", category=lighting)
        bulb = Product(name="Bulb", price=Decimal("20.00"), stock=3, category=lighting)
        chair = Product(name="Chair", price=Decimal("50.00"), stock=5, category=furniture, tags=[sale])
        hidden = Product(name="Hidden", price=Decimal("10.00"), stock=5, category=furniture, is_active=False)
        session.add_all([lighting, furniture, sale, lamp, bulb, chair, hidden])
        await session.flush()

        session.add_all([
            Discount(percentage=Decimal("10"), category_id=lighting.id, **window),
            Discount(percentage=Decimal("15"), tag_id=sale.id, **window),
            Coupon(code="SAVE5", percentage=Decimal("5"), min_order_amount=Decimal("50"), **window),
            Coupon(code="BIG20", percentage=Decimal("20"), min_order_amount=Decimal("1000"), **window),
            Coupon(code="OLD", percentage=Decimal("50"),
                   start_date=now - timedelta(days=10), end_date=now - timedelta(days=5)),
        ])
        await session.commit()
        return {
            "lighting": lighting.id,
            "furniture": furniture.id,
            "sale": sale.id,
            "lamp": lamp.id,
            "bulb": bulb.id,
            "chair": chair.id,
            "hidden": hidden.id,
        }
