# storefront/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_gateway, remote_unavailable
from storefront.domain.errors import RemoteStoreError
from storefront.domain.schemas import Product
from storefront.services.catalog_client import CatalogClient
from storefront.services.remote_store import RemoteStoreGateway

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[Product])
def list_products(
    limit: int = Query(20, gt=0, le=100),
    offset: int = Query(0, ge=0),
    category_id: str | None = None,
    gateway: RemoteStoreGateway = Depends(get_gateway),
):
    try:
        return CatalogClient(gateway).list_products(limit=limit, offset=offset, category_id=category_id)
    except RemoteStoreError as e:
        raise remote_unavailable(e)


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, gateway: RemoteStoreGateway = Depends(get_gateway)):
    try:
        return CatalogClient(gateway).fetch_product(product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteStoreError as e:
        raise remote_unavailable(e)
