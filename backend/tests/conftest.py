from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date, datetime, timezone
from pathlib import Path

import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# app.core.db builds its engine at import time; give it something importable.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BASIC_AUTH_USERNAME", "test-user")
os.environ.setdefault("BASIC_AUTH_PASSWORD", "test-pass")
os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")

import app.models  # noqa: E402,F401
from app.core.config import get_settings  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models.order import Order  # noqa: E402
from app.models.seller import Seller  # noqa: E402
from app.schemas.orders import OrderCreate, OrderItemCreate  # noqa: E402
from app.schemas.seller_auth import SellerRegisterIn  # noqa: E402
from app.services.orders import create_order, mark_order_delivered, mark_order_paid  # noqa: E402
from app.services.sellers import register_seller  # noqa: E402


ADMIN = "admin:test-user"


@pytest_asyncio.fixture
async def db_engine(tmp_path, monkeypatch) -> AsyncIterator[AsyncEngine]:
    db_path = tmp_path / "test.db"

    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("BASIC_AUTH_USERNAME", "test-user")
    monkeypatch.setenv("BASIC_AUTH_PASSWORD", "test-pass")
    monkeypatch.setenv("JWT_SECRET", "test-access-secret-0123456789abcdef")
    monkeypatch.setenv("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
    # Cheapest bcrypt cost keeps the suite fast.
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.setenv("PLATFORM_COMMISSION_RATE_BP", "1000")
    monkeypatch.setenv("PAYOUT_GATEWAY_FEE_BP", "0")
    monkeypatch.setenv("DEFAULT_CURRENCY", "USD")
    get_settings.cache_clear()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", future=True)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_seller(db_session: AsyncSession) -> Callable[..., Awaitable[Seller]]:
    counter = {"n": 0}

    async def _make(*, business_name: str | None = None, email: str | None = None, password: str = "s3cret-pass") -> Seller:
        counter["n"] += 1
        n = counter["n"]
        data = SellerRegisterIn(
            email=email or f"seller{n}@example.com",
            password=password,
            business_name=business_name or f"Seller {n} Motors",
            business_address=f"{n} Samora Machel Ave, Harare",
            contact_number="+263771000000",
            tin=f"TIN-{n:04d}",
            bank_account_name=f"Seller {n}",
            bank_account_number=f"10000{n}",
            bank_name="CBZ",
        )
        seller = await register_seller(db_session, data=data)
        await db_session.commit()
        return seller

    return _make


@pytest_asyncio.fixture
async def make_order(db_session: AsyncSession) -> Callable[..., Awaitable[Order]]:
    """Creates an order, optionally paid (for `paid_cents`) and delivered."""

    async def _make(
        seller: Seller,
        *,
        paid_cents: int | None = None,
        delivered: date | None = date(2026, 3, 10),
        currency: str | None = None,
        paid_at: datetime = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc),
    ) -> Order:
        amount = paid_cents if paid_cents is not None else 1000
        item = OrderItemCreate(product_name="Brake pads", part_number="BP-100", quantity=1, unit_price_cents=amount)
        order = await create_order(
            db_session,
            actor=ADMIN,
            data=OrderCreate(seller_id=seller.id, buyer_id="buyer-1", currency=currency, items=[item]),
            today=paid_at.date(),
        )
        if paid_cents is not None:
            await mark_order_paid(db_session, actor=ADMIN, order_id=order.id, payment_date=paid_at)
        if delivered is not None:
            await mark_order_delivered(db_session, actor=ADMIN, order_id=order.id, delivery_date=delivered)
        await db_session.commit()
        return order

    return _make
