# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_order_service, remote_unavailable
from storefront.domain.errors import RemoteStoreError
from storefront.domain.schemas import OrderItemOut, OrderOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
def list_orders(
    customer_id: str = Query(..., min_length=1),
    svc: OrderService = Depends(get_order_service),
):
    """
    Order history of the customer, newest first.
    """
    try:
        return svc.list_orders(customer_id)
    except RemoteStoreError as e:
        raise remote_unavailable(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    customer_id: str = Query(..., min_length=1),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.get_order(order_id, customer_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteStoreError as e:
        raise remote_unavailable(e)


@router.post("/{order_id}/items", response_model=List[OrderItemOut])
def attach_items(
    order_id: str,
    customer_id: str = Query(..., min_length=1),
    svc: OrderService = Depends(get_order_service),
):
    """
    Retries attaching items to an orphaned order header. Safe to repeat.
    """
    try:
        return svc.retry_orphan(order_id, customer_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteStoreError as e:
        raise remote_unavailable(e)
