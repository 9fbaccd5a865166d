# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_cart_store, get_customer, get_order_service
from storefront.domain.errors import ItemsCreationError, ValidationError
from storefront.domain.schemas import CheckoutIn, Customer, OrderOut, ShippingInfo
from storefront.services.cart_store import CartStore
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    customer: Customer = Depends(get_customer),
    cart: CartStore = Depends(get_cart_store),
    svc: OrderService = Depends(get_order_service),
):
    """
    Submits the customer's cart as an order. The cart is cleared only when
    the header and all items were written.
    """
    shipping = ShippingInfo(
        address=payload.address,
        city=payload.city,
        phone=payload.phone,
        notes=payload.notes,
    )
    result = svc.checkout(
        cart,
        shipping,
        payload.payment_method,
        customer_id=customer.id,
        tier=customer.tier,
        payment_phone=payload.payment_phone,
    )

    if result.ok:
        return {**result.order, "items": result.lines}

    error = result.error
    detail = {
        "state": result.state.value,
        "error": type(error).__name__,
        "message": error.user_message,
        "retryable": error.retryable,
    }

    if isinstance(error, ValidationError):
        detail["field"] = error.field
        raise HTTPException(status_code=422, detail=detail)

    #"contact support with this reference" vs "nothing happened, try again"
    if isinstance(error, ItemsCreationError):
        detail["reference"] = error.header_id

    raise HTTPException(status_code=502, detail=detail)
