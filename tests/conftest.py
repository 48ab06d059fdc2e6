"""
Shared fixtures: in-memory SQLite store, fake redis client, services, API client.
"""

import time
from decimal import Decimal

import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.data.database import Base, get_db
from app.data import models  # noqa: F401
from app.main import create_app
from app.services.cache_service import CacheService
from app.services.catalog_service import CatalogService
from app.services.cart_service import CartService


class FakeRedis:
    """Dict-backed stand-in for redis.Redis with TTL and a switchable outage."""

    def __init__(self):
        self.store = {}
        self.expiry = {}
        self.down = False
        self.calls = []

    def _check(self, op):
        self.calls.append(op)
        if self.down:
            raise redis.ConnectionError("Connection refused")

    def _alive(self, key):
        exp = self.expiry.get(key)
        if exp is not None and exp <= time.time():
            self.store.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.store

    def ping(self):
        self._check("ping")
        return True

    def get(self, key):
        self._check("get")
        return self.store[key] if self._alive(key) else None

    def setex(self, key, ttl, value):
        self._check("setex")
        self.store[key] = value
        self.expiry[key] = time.time() + ttl
        return True

    def delete(self, *keys):
        self._check("delete")
        removed = 0
        for key in keys:
            if self._alive(key):
                removed += 1
            self.store.pop(key, None)
            self.expiry.pop(key, None)
        return removed

    def ttl(self, key):
        return int(self.expiry[key] - time.time()) if self._alive(key) else -2

    def close(self):
        pass


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    """CacheService writing back inline so tests see writes immediately."""
    service = CacheService(client=fake_redis, background_writes=False)
    service.start()
    yield service
    service.close()


@pytest.fixture
def catalog(db, cache):
    return CatalogService(db=db, cache=cache)


@pytest.fixture
def cart_service(db, catalog):
    return CartService(db=db, catalog=catalog)


@pytest.fixture
def widget_fields():
    return {
        "name": "Widget",
        "description": "A very useful widget",
        "price": Decimal("10"),
        "brand": "Acme",
        "category": "Tools",
        "count_in_stock": 5,
        "images": ["https://img.example.com/widget.png"],
    }


@pytest.fixture
def widget(catalog, widget_fields):
    return catalog.create_product(widget_fields)


@pytest.fixture
def gadget(catalog):
    return catalog.create_product({
        "name": "Gadget",
        "description": "Shiny gadget",
        "price": Decimal("2.50"),
        "brand": "Acme",
        "category": "Toys",
        "count_in_stock": 0,
    })


@pytest.fixture
def app(session_factory, cache):
    app = create_app(cache=cache, create_tables=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
