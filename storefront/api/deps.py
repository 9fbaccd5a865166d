# storefront/api/deps.py
from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import RemoteStoreError
from storefront.domain.schemas import Customer
from storefront.repos.orphan_repo import OrphanRepo
from storefront.repos.storage import get_storage
from storefront.services.cart_store import CartStore
from storefront.services.order_service import OrderService
from storefront.services.remote_store import RemoteStoreGateway
from storefront.services.user_service import UserService


def get_gateway() -> RemoteStoreGateway:
    return RemoteStoreGateway()


def remote_unavailable(e: RemoteStoreError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Remote store unavailable: {e.detail or e}")


def get_customer(
    customer_id: str = Query(..., min_length=1),
    gateway: RemoteStoreGateway = Depends(get_gateway),
) -> Customer:
    try:
        return UserService(gateway).get_customer(customer_id)
    except RemoteStoreError as e:
        raise remote_unavailable(e)


def get_cart_store(
    customer: Customer = Depends(get_customer),
    db: Session = Depends(get_db),
) -> CartStore:
    #fresh store per request and identity, rehydrated from storage
    return CartStore(get_storage(db), customer_id=customer.id)


def get_order_service(
    gateway: RemoteStoreGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
) -> OrderService:
    return OrderService(gateway, orphan_repo=OrphanRepo(db))
