import logging
from decimal import Decimal

import pytest

from storefront.domain.errors import (
    HeaderCreationError,
    ItemsCreationError,
    RemoteStoreError,
    ValidationError,
)
from storefront.domain.schemas import CustomerTier, PaymentMethod, ShippingInfo
from storefront.repos.orphan_repo import OrphanRepo
from storefront.services.cart_store import CartStore
from storefront.services.order_service import OrderService, OrderState


@pytest.fixture
def shipping():
    return ShippingInfo(address="Plot 12 High St", city="Mbarara", phone="0772000000", notes="Gate B")


@pytest.fixture
def cart(storage, make_product):
    cart = CartStore(storage, customer_id="u1")
    cart.add_item(make_product("A", price="5000"), 2)
    return cart


def checkout(svc, cart, shipping, method=PaymentMethod.CASH_ON_DELIVERY, phone=None, tier=CustomerTier.RETAIL):
    return svc.checkout(cart, shipping, method, customer_id="u1", tier=tier, payment_phone=phone)


def test_full_success_writes_header_then_items_and_clears_cart(gateway, cart, shipping):
    result = checkout(OrderService(gateway), cart, shipping)

    assert result.state is OrderState.COMPLETED
    assert result.ok and result.error is None
    assert gateway.writes() == [("create", "orders"), ("create_batch", "order_items")]

    header = gateway.tables["orders"][0]
    assert header["user_id"] == "u1"
    assert header["total_amount"] == Decimal("10000")
    assert header["payment_status"] == "pending"
    assert header["order_status"] == "pending"
    assert header["payment_method"] == "cash_on_delivery"
    assert header["shipping_city"] == "Mbarara"
    assert header["notes"] == "Gate B"

    items = gateway.tables["order_items"]
    assert [(i["order_id"], i["product_id"], i["quantity"], i["unit_price"]) for i in items] == [
        (header["id"], "A", 2, Decimal("5000"))
    ]
    assert cart.total_items() == 0


def test_header_failure_leaves_cart_untouched(gateway, cart, shipping):
    gateway.fail_tables.add("orders")

    result = checkout(OrderService(gateway), cart, shipping)

    assert result.state is OrderState.FAILED
    assert isinstance(result.error, HeaderCreationError)
    assert result.error.retryable
    assert ("create_batch", "order_items") not in gateway.calls
    assert [(l.product.id, l.quantity) for l in cart.lines] == [("A", 2)]


def test_header_without_id_is_not_retryable(gateway, cart, shipping, caplog):
    gateway.create = lambda table, record: {"total_amount": record["total_amount"]}

    with caplog.at_level(logging.ERROR, logger="storefront"):
        result = checkout(OrderService(gateway), cart, shipping)

    assert result.state is OrderState.FAILED
    assert isinstance(result.error, HeaderCreationError)
    assert not result.error.retryable
    assert "contact support" in result.error.user_message
    assert "possible orphaned order" in caplog.text
    assert ("create_batch", "order_items") not in gateway.calls
    assert [(l.product.id, l.quantity) for l in cart.lines] == [("A", 2)]


def test_items_failure_reports_orphaned_header(gateway, cart, shipping):
    gateway.fail_tables.add("order_items")

    result = checkout(OrderService(gateway), cart, shipping)

    assert result.state is OrderState.FAILED
    assert isinstance(result.error, ItemsCreationError)
    assert result.error.header_id == "H1"
    assert result.header_id == "H1"
    assert not result.error.retryable
    assert "H1" in result.error.user_message
    assert not result.should_clear_cart
    assert [(l.product.id, l.quantity) for l in cart.lines] == [("A", 2)]


def test_items_failure_is_recorded_for_reconciliation(gateway, cart, shipping, db):
    gateway.fail_tables.add("order_items")
    repo = OrphanRepo(db)

    checkout(OrderService(gateway, orphan_repo=repo), cart, shipping)

    orphan = repo.get("H1")
    assert orphan.customer_id == "u1"
    assert OrphanRepo.lines_of(orphan) == [{"product_id": "A", "quantity": 2, "unit_price": "5000"}]


@pytest.mark.parametrize(
    "field, overrides",
    [
        ("address", {"address": "  "}),
        ("city", {"city": ""}),
        ("phone", {"phone": ""}),
    ],
)
def test_missing_shipping_fields_fail_before_io(gateway, cart, shipping, field, overrides):
    bad = shipping.model_copy(update=overrides)

    result = checkout(OrderService(gateway), cart, bad)

    assert isinstance(result.error, ValidationError)
    assert result.error.field == field
    assert gateway.calls == []


def test_empty_cart_fails_validation(gateway, storage, shipping):
    result = checkout(OrderService(gateway), CartStore(storage, customer_id="u1"), shipping)

    assert isinstance(result.error, ValidationError)
    assert result.error.field == "cart"
    assert gateway.calls == []


@pytest.mark.parametrize("method", [PaymentMethod.MTN_MOBILE_MONEY, PaymentMethod.AIRTEL_MONEY])
def test_mobile_money_needs_payment_phone(gateway, cart, shipping, method):
    result = checkout(OrderService(gateway), cart, shipping, method=method, phone=" ")

    assert isinstance(result.error, ValidationError)
    assert result.error.field == "payment_phone"
    assert gateway.calls == []

    result = checkout(OrderService(gateway), cart, shipping, method=method, phone="0701000000")
    assert result.ok


def test_unknown_payment_method(gateway, cart, shipping):
    result = checkout(OrderService(gateway), cart, shipping, method="bitcoin")

    assert result.error.field == "payment_method"
    assert gateway.calls == []


def test_cart_of_another_customer_is_rejected(gateway, storage, make_product, shipping):
    cart = CartStore(storage, customer_id="u2")
    cart.add_item(make_product("A"), 1)

    result = checkout(OrderService(gateway), cart, shipping)

    assert isinstance(result.error, ValidationError)
    assert gateway.calls == []
    assert cart.total_items() == 1


def test_unit_price_frozen_at_submission_tier(gateway, storage, make_product, shipping):
    cart = CartStore(storage, customer_id="u1")
    cart.add_item(make_product("A", price="1000", wholesale_price="900", wholesale_min_qty=10), 10)

    result = checkout(OrderService(gateway), cart, shipping, tier=CustomerTier.WHOLESALE)

    assert result.lines[0]["unit_price"] == Decimal("900")
    assert gateway.tables["orders"][0]["total_amount"] == Decimal("9000")


def test_submit_order_does_not_clear_cart(gateway, cart, shipping):
    result = OrderService(gateway).submit_order(
        cart, shipping, PaymentMethod.CASH_ON_DELIVERY, customer_id="u1", tier=CustomerTier.RETAIL
    )

    assert result.should_clear_cart
    assert cart.total_items() == 2


def test_attach_items_is_idempotent(gateway):
    svc = OrderService(gateway)
    lines = [{"product_id": "A", "quantity": 2, "unit_price": "5000"}]

    first = svc.attach_items("H9", lines)
    second = svc.attach_items("H9", lines)

    assert len(gateway.tables["order_items"]) == 1
    assert first == second


def test_retry_orphan_attaches_and_resolves(gateway, cart, shipping, db):
    repo = OrphanRepo(db)
    gateway.fail_tables.add("order_items")
    svc = OrderService(gateway, orphan_repo=repo)
    checkout(svc, cart, shipping)

    gateway.fail_tables.clear()
    items = svc.retry_orphan("H1", customer_id="u1")

    assert [(i["order_id"], i["product_id"], i["quantity"]) for i in items] == [("H1", "A", 2)]
    assert repo.get("H1").resolved_at is not None
    assert repo.list_unresolved() == []


def test_retry_orphan_failure_counts_attempt(gateway, cart, shipping, db):
    repo = OrphanRepo(db)
    gateway.fail_tables.add("order_items")
    svc = OrderService(gateway, orphan_repo=repo)
    checkout(svc, cart, shipping)

    with pytest.raises(RemoteStoreError):
        svc.retry_orphan("H1")

    orphan = repo.get("H1")
    assert orphan.attempts == 1
    assert orphan.resolved_at is None
    assert "insert failed" in orphan.last_error


def test_retry_orphan_checks_owner(gateway, cart, shipping, db):
    gateway.fail_tables.add("order_items")
    svc = OrderService(gateway, orphan_repo=OrphanRepo(db))
    checkout(svc, cart, shipping)

    with pytest.raises(PermissionError):
        svc.retry_orphan("H1", customer_id="someone-else")

    with pytest.raises(LookupError):
        svc.retry_orphan("H404")


def test_get_and_list_orders(gateway, cart, shipping):
    svc = OrderService(gateway)
    checkout(svc, cart, shipping)

    order = svc.get_order("H1", "u1")
    assert order["items"][0]["product_id"] == "A"
    assert [o["id"] for o in svc.list_orders("u1")] == ["H1"]

    with pytest.raises(PermissionError):
        svc.get_order("H1", "u2")

    with pytest.raises(LookupError):
        svc.get_order("missing", "u1")
