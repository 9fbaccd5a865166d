# storefront/services/pricing.py
from decimal import Decimal

from storefront.domain.schemas import CustomerTier, Product


def is_wholesale_applied(product: Product, quantity: int, tier: CustomerTier) -> bool:
    #threshold is inclusive
    return (
        CustomerTier(tier).is_wholesale_eligible
        and product.wholesale_price is not None
        and product.wholesale_min_qty is not None
        and quantity >= product.wholesale_min_qty
    )


def resolve_unit_price(product: Product, quantity: int, tier: CustomerTier) -> Decimal:
    """
    Unit price for `quantity` units of `product` bought by a customer of `tier`.

    Pure. Called on every read because crossing the wholesale threshold
    (or a tier change) changes the answer.
    """
    if is_wholesale_applied(product, quantity, tier):
        return product.wholesale_price
    return product.price


def line_total(product: Product, quantity: int, tier: CustomerTier) -> Decimal:
    return resolve_unit_price(product, quantity, tier) * quantity
