# storefront/services/order_service.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import (
    CheckoutError,
    HeaderCreationError,
    ItemsCreationError,
    RemoteStoreError,
    ValidationError,
)
from storefront.domain.schemas import CartLine, CustomerTier, PaymentMethod, ShippingInfo
from storefront.repos.orphan_repo import OrphanRepo
from storefront.services.cart_store import CartStore
from storefront.services.pricing import resolve_unit_price
from storefront.services.remote_store import RemoteStoreGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDERS_TABLE = "orders"
ORDER_ITEMS_TABLE = "order_items"
ORDER_SELECT = "*,items:order_items(product_id,quantity,unit_price)"


class OrderState(str, Enum):
    DRAFT = "draft"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    OrderState.DRAFT: {OrderState.SUBMITTING, OrderState.FAILED},
    OrderState.SUBMITTING: {OrderState.COMPLETED, OrderState.FAILED},
    OrderState.COMPLETED: set(),
    OrderState.FAILED: set(),
}


@dataclass
class OrderResult:
    state: OrderState
    order: Dict[str, Any] | None = None
    lines: List[Dict[str, Any]] = field(default_factory=list)
    error: CheckoutError | None = None

    @property
    def ok(self) -> bool:
        return self.state is OrderState.COMPLETED

    @property
    def should_clear_cart(self) -> bool:
        #only a fully written order consumes the cart
        return self.ok

    @property
    def header_id(self) -> str | None:
        if self.order and self.order.get("id") is not None:
            return str(self.order["id"])
        return None


class OrderSubmission:
    """One checkout attempt: DRAFT -> SUBMITTING -> COMPLETED | FAILED."""

    def __init__(self):
        self.state = OrderState.DRAFT

    def advance(self, new_state: OrderState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal order state transition {self.state.value} -> {new_state.value}")
        self.state = new_state

    def fail(self, error: CheckoutError, order=None, lines=None) -> OrderResult:
        self.advance(OrderState.FAILED)
        return OrderResult(state=self.state, order=order, lines=lines or [], error=error)

    def complete(self, order, lines) -> OrderResult:
        self.advance(OrderState.COMPLETED)
        return OrderResult(state=self.state, order=order, lines=lines)


class OrderService:
    """
    Places orders against the remote store.

    The backend gives no multi-statement transaction, so an order is written
    in two dependent calls (header, then items). A failure between them leaves
    an orphaned header, reported as ItemsCreationError and recorded for
    reconciliation when an OrphanRepo is configured.
    """

    def __init__(self, gateway: RemoteStoreGateway, orphan_repo: OrphanRepo | None = None):
        self.gateway = gateway
        self.orphan_repo = orphan_repo

    #commands
    def submit_order(
        self,
        cart: CartStore | Iterable[CartLine],
        shipping: ShippingInfo,
        payment_method: PaymentMethod | str,
        customer_id: str,
        tier: CustomerTier,
        payment_phone: str | None = None,
    ) -> OrderResult:
        """
        Use case: submit the cart as an order.

        1. validate input (no I/O)
        2. price every line once, freezing unit prices
        3. create the header
        4. create the items referencing the header
        """
        submission = OrderSubmission()
        lines = list(cart)

        try:
            method = self._validate(lines, shipping, payment_method, customer_id, payment_phone)
        except ValidationError as e:
            logger.info(f"Checkout rejected for customer {customer_id}: {e}")
            return submission.fail(e)

        submission.advance(OrderState.SUBMITTING)

        priced = [
            (line, resolve_unit_price(line.product, line.quantity, tier))
            for line in lines
        ]
        total = sum((price * line.quantity for line, price in priced), Decimal("0.00"))

        header = {
            "user_id": customer_id,
            "total_amount": total,
            "payment_method": method.value,
            "payment_status": "pending",
            "payment_reference": None,
            "order_status": "pending",
            "shipping_address": shipping.address.strip(),
            "shipping_city": shipping.city.strip(),
            "shipping_phone": shipping.phone.strip(),
            "notes": shipping.notes or None,
            "created_at": datetime.now(timezone.utc),
        }

        logger.info(f"Creating order header for customer {customer_id}, total {total}")
        try:
            created = self.gateway.create(ORDERS_TABLE, header)
        except RemoteStoreError as e:
            logger.error(f"Order header creation failed for customer {customer_id}: {e}")
            return submission.fail(HeaderCreationError(str(e)))

        if created.get("id") is None:
            #the row may exist remotely, so do not offer a blind resubmit
            logger.error(
                f"Order header for customer {customer_id} came back without an id, "
                f"possible orphaned order (total {total}), needs manual support action"
            )
            return submission.fail(HeaderCreationError("Order header returned without an id", retryable=False))

        header_id = str(created["id"])

        #from here on run to completion, never abandon a created header
        order_lines = [
            {
                "order_id": header_id,
                "product_id": line.product.id,
                "quantity": line.quantity,
                "unit_price": price,
            }
            for line, price in priced
        ]

        logger.info(f"Attaching {len(order_lines)} items to order {header_id}")
        try:
            items = self.gateway.create_batch(ORDER_ITEMS_TABLE, order_lines)
        except RemoteStoreError as e:
            logger.error(f"Order {header_id} is orphaned, item creation failed: {e}")
            self._record_orphan(header_id, customer_id, order_lines)
            return submission.fail(ItemsCreationError(header_id, str(e)), order=created, lines=order_lines)

        logger.info(f"Order {header_id} placed for customer {customer_id}")
        return submission.complete(created, items)

    def checkout(
        self,
        cart_store: CartStore,
        shipping: ShippingInfo,
        payment_method: PaymentMethod | str,
        customer_id: str,
        tier: CustomerTier,
        payment_phone: str | None = None,
    ) -> OrderResult:
        if cart_store.customer_id is not None and cart_store.customer_id != customer_id:
            return OrderSubmission().fail(
                ValidationError("Cart belongs to another customer", field="customer_id")
            )

        result = self.submit_order(cart_store, shipping, payment_method, customer_id, tier, payment_phone)

        if result.should_clear_cart:
            cart_store.clear()
        return result

    def attach_items(self, header_id: str, lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Idempotent retry for an orphaned header: writes the frozen lines only
        if the header has no items yet. Raises RemoteStoreError.
        """
        existing = self.gateway.query(ORDER_ITEMS_TABLE, filters={"order_id": header_id})
        if existing:
            logger.info(f"Order {header_id} already has {len(existing)} items, nothing to attach")
            return existing

        records = [{**line, "order_id": header_id} for line in lines]
        logger.info(f"Re-attaching {len(records)} items to order {header_id}")
        return self.gateway.create_batch(ORDER_ITEMS_TABLE, records)

    def retry_orphan(self, header_id: str, customer_id: str | None = None) -> List[Dict[str, Any]]:
        if self.orphan_repo is None:
            raise RuntimeError("No orphan repository configured")

        orphan = self.orphan_repo.get(header_id)
        if not orphan:
            raise LookupError(f"No pending items for order {header_id}")

        if customer_id is not None and orphan.customer_id != customer_id:
            raise PermissionError("No access to this order")

        if orphan.resolved_at is not None:
            return self.gateway.query(ORDER_ITEMS_TABLE, filters={"order_id": header_id})

        try:
            items = self.attach_items(header_id, OrphanRepo.lines_of(orphan))
        except RemoteStoreError as e:
            self.orphan_repo.mark_attempt(header_id, str(e))
            raise

        self.orphan_repo.mark_resolved(header_id)
        logger.info(f"Order {header_id} reconciled")
        return items

    #queries
    def get_order(self, order_id: str, customer_id: str) -> Dict[str, Any]:
        rows = self.gateway.query(ORDERS_TABLE, filters={"id": order_id}, limit=1, select=ORDER_SELECT)

        if not rows:
            raise LookupError("Order not found")

        order = rows[0]
        if str(order.get("user_id")) != str(customer_id):
            raise PermissionError("No access to this order")
        return order

    def list_orders(self, customer_id: str) -> List[Dict[str, Any]]:
        return self.gateway.query(
            ORDERS_TABLE,
            filters={"user_id": customer_id},
            order="created_at.desc",
            select=ORDER_SELECT,
        )

    def _validate(self, lines, shipping, payment_method, customer_id, payment_phone) -> PaymentMethod:
        if not customer_id:
            raise ValidationError("Please sign in to place an order", field="customer_id")

        if not lines:
            raise ValidationError("Your cart is empty", field="cart")

        if not (shipping.address or "").strip():
            raise ValidationError("Please enter your delivery address", field="address")

        if not (shipping.city or "").strip():
            raise ValidationError("Please enter your city", field="city")

        if not (shipping.phone or "").strip():
            raise ValidationError("Please enter your contact phone number", field="phone")

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError(f"Unknown payment method: {payment_method}", field="payment_method") from None

        if method.is_mobile_money and not (payment_phone or "").strip():
            raise ValidationError("Please enter your mobile money phone number", field="payment_phone")

        return method

    def _record_orphan(self, header_id: str, customer_id: str, order_lines: List[Dict[str, Any]]) -> None:
        if self.orphan_repo is None:
            return

        frozen = [
            {
                "product_id": line["product_id"],
                "quantity": line["quantity"],
                "unit_price": str(line["unit_price"]),
            }
            for line in order_lines
        ]
        try:
            self.orphan_repo.record(header_id, customer_id, frozen)
        except SQLAlchemyError as e:
            self.orphan_repo.rollback()
            logger.error(f"Could not record orphaned order {header_id} for reconciliation: {e}")
