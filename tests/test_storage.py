from unittest.mock import Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import StorageReadError, StorageWriteError
from storefront.repos.storage import RedisKeyValueStorage, SqlKeyValueStorage, get_storage
from storefront.services.cart_store import CartStore


def test_sql_storage_set_get_overwrite_remove(db):
    storage = SqlKeyValueStorage(db)

    assert storage.get("cart") is None
    storage.set("cart", "one")
    storage.set("cart", "two")
    assert storage.get("cart") == "two"

    storage.remove("cart")
    storage.remove("cart")
    assert storage.get("cart") is None


def test_cart_survives_restart_on_sql_storage(engine, db, make_product):
    from sqlalchemy.orm import sessionmaker

    cart = CartStore(SqlKeyValueStorage(db), customer_id="u1")
    cart.add_item(make_product("A"), 2)
    cart.add_item(make_product("B"), 5)

    other_session = sessionmaker(bind=engine)()
    try:
        restored = CartStore(SqlKeyValueStorage(other_session), customer_id="u1")
        assert {(l.product.id, l.quantity) for l in restored.lines} == {("A", 2), ("B", 5)}
    finally:
        other_session.close()


def test_sql_storage_wraps_database_errors():
    db = Mock()
    db.get.side_effect = OperationalError("SELECT", {}, Exception("locked"))
    db.merge.side_effect = OperationalError("INSERT", {}, Exception("locked"))
    storage = SqlKeyValueStorage(db)

    with pytest.raises(StorageReadError):
        storage.get("cart")

    with pytest.raises(StorageWriteError):
        storage.set("cart", "x")
    db.rollback.assert_called()


def test_redis_storage_delegates_to_client():
    client = Mock()
    client.get.return_value = '{"lines": []}'
    storage = RedisKeyValueStorage(client=client)

    assert storage.get("cart") == '{"lines": []}'
    storage.set("cart", "x")
    storage.remove("cart")

    client.get.assert_called_once_with("cart")
    client.set.assert_called_once_with(name="cart", value="x")
    client.delete.assert_called_once_with("cart")


def test_redis_storage_retries_then_wraps_errors():
    client = Mock()
    client.set.side_effect = RedisConnectionError("down")
    client.get.side_effect = [RedisConnectionError("blip"), "value"]
    storage = RedisKeyValueStorage(client=client)

    assert storage.get("cart") == "value"

    with pytest.raises(StorageWriteError):
        storage.set("cart", "x")
    assert client.set.call_count == 3


def test_get_storage_picks_backend(db):
    assert isinstance(get_storage(db, backend="sql"), SqlKeyValueStorage)

    with pytest.raises(ValueError):
        get_storage(None, backend="sql")

    with pytest.raises(ValueError):
        get_storage(db, backend="floppy")
