# storefront/api/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_cart_store, get_customer, get_gateway, remote_unavailable
from storefront.domain.errors import RemoteStoreError
from storefront.domain.schemas import CartOut, Customer, ItemIn, QuantityIn
from storefront.services.cart_store import CartStore
from storefront.services.catalog_client import CatalogClient
from storefront.services.remote_store import RemoteStoreGateway

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
):
    return cart.summary(customer.tier)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
    gateway: RemoteStoreGateway = Depends(get_gateway),
):
    try:
        product = CatalogClient(gateway).fetch_product(payload.product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteStoreError as e:
        raise remote_unavailable(e)

    try:
        cart.add_item(product, payload.quantity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return cart.summary(customer.tier)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_quantity(
    product_id: str,
    payload: QuantityIn,
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
):
    cart.update_quantity(product_id, payload.quantity)
    return cart.summary(customer.tier)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
):
    cart.remove_item(product_id)
    return cart.summary(customer.tier)


@router.delete("", response_model=CartOut)
def clear_cart(
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
):
    cart.clear()
    return cart.summary(customer.tier)
