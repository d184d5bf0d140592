"""
Pytest configuration and shared fixtures for the Storefront API tests.

Provides a temp-file SQLite database (shared by the request session and the
independent sessions QueryBuilder.execute() opens), an httpx client bound to
the ASGI app, bearer tokens, and small factories for seeding rows.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from config import settings

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"
settings.environment = "test"

from main import app  # noqa: E402
from database import Base, get_db, get_session_factory  # noqa: E402
import db_models  # noqa: E402,F401
from db_models import Order, PaymentMethod, Product, User, Category  # noqa: E402
from middleware.auth import issue_access_token  # noqa: E402


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """
    A fresh SQLite file per test.

    A file (not :memory:) so that every connection in the pool sees the same
    tables and rows.
    """
    db_file = tmp_path / "storefront-test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client against the app with database dependencies pointed at the
    test database.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Seed Factories ───────────────────────────────────────────────────


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    async def _make(role: str = "customer", **fields) -> User:
        counter["n"] += 1
        user = User(
            name=fields.pop("name", f"User {counter['n']}"),
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            role=role,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_payment_method(db_session):
    async def _make(code: str = "COD", name: str | None = None) -> PaymentMethod:
        method = PaymentMethod(code=code, name=name or code)
        db_session.add(method)
        await db_session.commit()
        return method

    return _make


@pytest.fixture
def make_category(db_session):
    async def _make(name: str = "Shirts", **fields) -> Category:
        category = Category(name=name, **fields)
        db_session.add(category)
        await db_session.commit()
        return category

    return _make


@pytest.fixture
def make_product(db_session):
    counter = {"n": 0}

    async def _make(price: float = 100_000, **fields) -> Product:
        counter["n"] += 1
        product = Product(
            name=fields.pop("name", f"Product {counter['n']}"),
            price=price,
            **fields,
        )
        db_session.add(product)
        await db_session.commit()
        return product

    return _make


@pytest.fixture
def make_order(db_session):
    counter = {"n": 0}

    async def _make(payment_method: PaymentMethod, user: User | None = None, **fields) -> Order:
        counter["n"] += 1
        total = fields.pop("total", 250_000)
        order = Order(
            order_code=fields.pop("order_code", f"ORD{counter['n']:05d}"),
            user_id=user.id if user else None,
            payment_method_id=payment_method.id,
            total=total,
            final_total=fields.pop("final_total", total),
            **fields,
        )
        db_session.add(order)
        await db_session.commit()
        return order

    return _make


# ── Auth Fixtures ────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user(role="admin", name="Admin", email="admin@example.com")


@pytest_asyncio.fixture
async def customer(make_user) -> User:
    return await make_user(role="customer", name="Customer", email="customer@example.com")


def bearer(user: User) -> dict[str, str]:
    token = issue_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def customer_headers(customer) -> dict[str, str]:
    return bearer(customer)
