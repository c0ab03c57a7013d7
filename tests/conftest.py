"""Test fixtures for the MercadoYa backend tests."""

import asyncio
import os

# Настройки должны быть выставлены до импорта mercadoya
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("VAPID_PRIVATE_KEY", "")
os.environ.setdefault("VAPID_PUBLIC_KEY", "")

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from mercadoya.api.security import create_access_token
from mercadoya.database import Base, build_engine, get_db
from mercadoya.events.broadcaster import EventBroadcaster
from mercadoya.events.producer import OrderEventPublisher
from mercadoya.main import app
from mercadoya.models import Order, Product, User
from mercadoya.services.user_service import hash_password

ADMIN_ID = 1
CUSTOMER_ID = 7
MILK_ID = 3
BREAD_ID = 4

# bcrypt намеренно медленный, хешируем один раз на сессию
ADMIN_PASSWORD_HASH = hash_password("admin123")
CUSTOMER_PASSWORD_HASH = hash_password("cliente123")


class RecordingSubscriber:
    """Subscriber double that keeps every frame it receives."""

    def __init__(self):
        self.messages = []
        self.close_codes = []

    async def send_json(self, data):
        self.messages.append(data)

    async def close(self, code=1000):
        self.close_codes.append(code)

    def events(self, name):
        return [m for m in self.messages if m["event"] == name]


class FailingSubscriber:
    """Subscriber double whose connection is already gone."""

    def __init__(self):
        self.attempts = 0
        self.close_codes = []

    async def send_json(self, data):
        self.attempts += 1
        raise RuntimeError("connection reset by peer")

    async def close(self, code=1000):
        self.close_codes.append(code)


class SlowSubscriber:
    """Subscriber double that takes longer than any reasonable send timeout."""

    def __init__(self, delay: float = 1.0):
        self.delay = delay
        self.messages = []
        self.close_codes = []

    async def send_json(self, data):
        await asyncio.sleep(self.delay)
        self.messages.append(data)

    async def close(self, code=1000):
        self.close_codes.append(code)


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite database file for one test."""
    return tmp_path / "mercadoya_test.db"


@pytest.fixture
def sync_engine(db_path):
    """Synchronous engine used to create the schema, seed and inspect rows.

    Yields:
        Engine: engine bound to the per-test database file.
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(sync_engine):
    """Seed two users and two products.

    Returns:
        dict: ids of the seeded rows.
    """
    with Session(sync_engine) as session:
        session.add_all([
            User(id=ADMIN_ID, name="admin", password=ADMIN_PASSWORD_HASH, direccion="Oficina", role="admin"),
            User(id=CUSTOMER_ID, name="cliente", password=CUSTOMER_PASSWORD_HASH, direccion="Calle 1", role="user"),
            Product(id=MILK_ID, name="Leche", price=Decimal("10.00"), barcode="7790001", image="leche.png"),
            Product(id=BREAD_ID, name="Pan", price=Decimal("2.50"), barcode="7790002", image="pan.png"),
        ])
        session.commit()
    return {"admin_id": ADMIN_ID, "customer_id": CUSTOMER_ID, "milk_id": MILK_ID, "bread_id": BREAD_ID}


@pytest.fixture
def session_factory(db_path, sync_engine):
    """Async session factory over the same database file.

    NullPool keeps connections from leaking between event loops.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def broadcaster():
    return EventBroadcaster(send_timeout=0.5)


@pytest.fixture
def publisher(broadcaster):
    return OrderEventPublisher(broadcaster, push_enabled=False)


@pytest.fixture
def subscriber():
    return RecordingSubscriber()


@pytest.fixture
def make_subscriber():
    """Factory for extra recording subscribers."""
    return RecordingSubscriber


@pytest.fixture
def failing_subscriber():
    return FailingSubscriber()


@pytest.fixture
def slow_subscriber():
    return SlowSubscriber()


@pytest.fixture
def count_rows(sync_engine):
    """Count rows of a model in the database, bypassing the async stack."""

    def _count(model, **filters):
        with Session(sync_engine) as session:
            query = select(func.count()).select_from(model)
            for column, value in filters.items():
                query = query.where(getattr(model, column) == value)
            return session.execute(query).scalar_one()

    return _count


@pytest.fixture
def stored_status(sync_engine):
    def _status(order_id):
        with Session(sync_engine) as session:
            order = session.get(Order, order_id)
            return order.status if order else None

    return _status


@pytest.fixture
def client(session_factory, broadcaster, publisher, seed):
    """TestClient wired to the per-test database and event stack."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    saved_state = (app.state.broadcaster, app.state.event_publisher)
    app.dependency_overrides[get_db] = _get_db
    app.state.broadcaster = broadcaster
    app.state.event_publisher = publisher

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.broadcaster, app.state.event_publisher = saved_state


@pytest.fixture
def order_body():
    """Build a POST /api/orders body for the seeded customer and milk."""

    def _body(user_id=CUSTOMER_ID, product_id=MILK_ID, quantity=1, price=10.0):
        return {"userId": user_id, "products": [{"id": product_id, "quantity": quantity, "price": price}]}

    return _body


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token(ADMIN_ID, 'admin')}"}


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {create_access_token(CUSTOMER_ID, 'user')}"}

