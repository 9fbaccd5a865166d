"""Shared pytest fixtures for storefront tests."""

from decimal import Decimal
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base
from storefront.data import models  # noqa: F401
from storefront.domain.errors import RemoteStoreError, StorageReadError, StorageWriteError
from storefront.domain.schemas import Product


class MemoryStorage:
    """Key-value storage kept in a dict; can be told to fail."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    def get(self, key):
        if self.fail_reads:
            raise StorageReadError("disk unavailable")
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise StorageWriteError("disk full")
        self.writes += 1
        self.data[key] = value

    def remove(self, key):
        if self.fail_writes:
            raise StorageWriteError("disk full")
        self.data.pop(key, None)


class FakeGateway:
    """
    In-memory remote store. `fail_tables` makes every write to a table raise
    RemoteStoreError; `calls` records (op, table) in order.
    """

    ID_PREFIX = {"orders": "H", "order_items": "I"}

    def __init__(self, tables=None):
        self.tables = {name: list(rows) for name, rows in (tables or {}).items()}
        self.fail_tables = set()
        self.fail_queries = set()
        self.calls = []
        self._ids = count(1)

    def _next_id(self, table):
        return f"{self.ID_PREFIX.get(table, 'R')}{next(self._ids)}"

    def _check(self, table):
        if table in self.fail_tables:
            raise RemoteStoreError(table, 500, "insert failed")

    def create(self, table, record):
        self.calls.append(("create", table))
        self._check(table)
        row = {**record, "id": self._next_id(table)}
        self.tables.setdefault(table, []).append(row)
        return row

    def create_batch(self, table, records):
        self.calls.append(("create_batch", table))
        self._check(table)
        rows = [{**record, "id": self._next_id(table)} for record in records]
        self.tables.setdefault(table, []).extend(rows)
        return rows

    def query(self, table, filters=None, limit=None, offset=0, order=None, select="*"):
        self.calls.append(("query", table))
        if table in self.fail_queries:
            raise RemoteStoreError(table, 503, "unavailable")

        rows = [
            row for row in self.tables.get(table, [])
            if all(str(row.get(k)) == str(v) for k, v in (filters or {}).items())
        ]
        if "items:order_items" in select:
            rows = [
                {**row, "items": [i for i in self.tables.get("order_items", []) if i["order_id"] == row["id"]]}
                for row in rows
            ]
        rows = rows[offset:]
        return rows[:limit] if limit is not None else rows

    def writes(self):
        return [c for c in self.calls if c[0] != "query"]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_product():
    def _make(id="A", price="1000", wholesale_price=None, wholesale_min_qty=None, stock=50, title=None):
        return Product(
            id=id,
            title=title or f"Product {id}",
            price=Decimal(price),
            wholesale_price=Decimal(wholesale_price) if wholesale_price is not None else None,
            wholesale_min_qty=wholesale_min_qty,
            stock=stock,
        )
    return _make
