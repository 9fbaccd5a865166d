# storefront/services/cart_store.py
from decimal import Decimal
from typing import Any, Dict, Iterator, List

from pydantic import ValidationError as SchemaError

from storefront.domain.errors import StorageError
from storefront.domain.schemas import CartLine, CustomerTier, Product, StoredCart
from storefront.repos.storage import KeyValueStorage
from storefront.services.pricing import is_wholesale_applied, line_total, resolve_unit_price
from storefront.utils.settings import CART_STORAGE_KEY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_storage_key(customer_id: str | None) -> str:
    return f"{CART_STORAGE_KEY}:{customer_id}" if customer_id else CART_STORAGE_KEY


class CartStore:
    """
    Pending purchase of one customer on one device.

    commands (add_item, update_quantity, remove_item, clear) mutate the lines
    and write the whole cart back to storage; queries (totals, summary) never
    touch storage and always price at read time.

    Each customer's cart lives under its own key (`cart:<customer_id>`),
    anonymous carts under the bare key. The blob is also tagged with its
    owner; a blob owned by someone else is stale and is not loaded.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        customer_id: str | None = None,
        storage_key: str | None = None,
    ):
        self.storage = storage
        self.customer_id = customer_id
        self.storage_key = storage_key or cart_storage_key(customer_id)

        #product_id -> line, insertion ordered
        self._lines: Dict[str, CartLine] = {}
        self._load()

    #queries
    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> CartLine | None:
        return self._lines.get(product_id)

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def total_amount(self, tier: CustomerTier) -> Decimal:
        return sum(
            (line_total(line.product, line.quantity, tier) for line in self._lines.values()),
            Decimal("0.00"),
        )

    def summary(self, tier: CustomerTier) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "tier": tier,
            "items": [
                {
                    "product_id": line.product.id,
                    "title": line.product.title,
                    "quantity": line.quantity,
                    "unit_price": resolve_unit_price(line.product, line.quantity, tier),
                    "line_total": line_total(line.product, line.quantity, tier),
                    "wholesale_applied": is_wholesale_applied(line.product, line.quantity, tier),
                }
                for line in self._lines.values()
            ],
            "total_items": self.total_items(),
            "total_amount": self.total_amount(tier),
        }

    #commands
    def add_item(self, product: Product, quantity: int) -> CartLine:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        #no stock check here, quantity controls bound it against product.stock
        existing = self._lines.get(product.id)

        if existing:
            logger.info(
                f"Product {product.id} already in cart, quantity "
                f"{existing.quantity} -> {existing.quantity + quantity}"
            )
            existing.quantity += quantity
            existing.product = product  # refresh snapshot
            line = existing
        else:
            logger.info(f"Adding product {product.id} x{quantity} to cart")
            line = CartLine(product=product, quantity=quantity)
            self._lines[product.id] = line

        self._persist()
        return line

    def update_quantity(self, product_id: str, quantity: int) -> CartLine | None:
        if quantity <= 0:
            self.remove_item(product_id)
            return None

        line = self._lines.get(product_id)
        if not line:
            return None

        logger.info(f"Setting quantity of product {product_id} to {quantity}")
        line.quantity = quantity
        self._persist()
        return line

    def remove_item(self, product_id: str) -> None:
        if self._lines.pop(product_id, None) is None:
            return

        logger.info(f"Removed product {product_id} from cart")
        self._persist()

    def clear(self) -> None:
        logger.info(f"Clearing cart of customer {self.customer_id}")
        self._lines.clear()
        self._persist()

    #persistence
    def _read(self, key: str) -> StoredCart | None:
        try:
            raw = self.storage.get(key)
        except StorageError as e:
            logger.warning(f"Could not read saved cart '{key}', starting empty: {e}")
            return None

        if not raw:
            return None

        try:
            return StoredCart.model_validate_json(raw)
        except SchemaError as e:
            logger.warning(f"Saved cart '{key}' is corrupt, starting empty: {e}")
            return None

    def _load(self) -> None:
        stored = self._read(self.storage_key)
        adopted = False

        #first sign-in on this device picks up the anonymous cart
        if stored is None and self.customer_id is not None and self.storage_key != CART_STORAGE_KEY:
            stored = self._read(CART_STORAGE_KEY)
            adopted = stored is not None and stored.customer_id is None

        if stored is None:
            return

        if stored.customer_id is not None and stored.customer_id != self.customer_id:
            logger.info(
                f"Saved cart belongs to customer {stored.customer_id}, "
                f"ignoring it for {self.customer_id}"
            )
            return

        for line in stored.lines:
            existing = self._lines.get(line.product.id)
            if existing:
                existing.quantity += line.quantity
            else:
                self._lines[line.product.id] = line

        logger.info(f"Restored cart with {len(self._lines)} lines")

        if adopted:
            logger.info(f"Adopting anonymous cart for customer {self.customer_id}")
            self._persist()
            try:
                self.storage.remove(CART_STORAGE_KEY)
            except StorageError as e:
                logger.error(f"Failed to drop anonymous cart: {e}")

    def _persist(self) -> None:
        payload = StoredCart(customer_id=self.customer_id, lines=self.lines).model_dump_json()
        try:
            self.storage.set(self.storage_key, payload)
        except StorageError as e:
            #in-memory cart stays authoritative for this session
            logger.error(f"Failed to persist cart: {e}")
