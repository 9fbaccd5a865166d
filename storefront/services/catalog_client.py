# storefront/services/catalog_client.py
from typing import List

from pydantic import ValidationError as SchemaError

from storefront.domain.schemas import Product
from storefront.services.remote_store import RemoteStoreGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS_TABLE = "products"


class CatalogClient:
    def __init__(self, gateway: RemoteStoreGateway):
        self.gateway = gateway

    def fetch_product(self, product_id: str) -> Product:
        logger.info(f"Fetching product {product_id} from catalog")
        rows = self.gateway.query(PRODUCTS_TABLE, filters={"id": product_id}, limit=1)
        if not rows:
            raise LookupError(f"Product {product_id} not found")

        try:
            return Product.model_validate(rows[0])
        except SchemaError as e:
            #e.g. wholesale price without a minimum quantity, cannot be priced
            logger.warning(f"Product {product_id} has invalid catalog data: {e}")
            raise LookupError(f"Product {product_id} is unavailable") from e

    def list_products(self, limit: int = 20, offset: int = 0, category_id: str | None = None) -> List[Product]:
        filters = {"category_id": category_id} if category_id else None
        rows = self.gateway.query(
            PRODUCTS_TABLE,
            filters=filters,
            limit=limit,
            offset=offset,
            order="created_at.desc",
        )

        products = []
        for row in rows:
            try:
                products.append(Product.model_validate(row))
            except SchemaError as e:
                logger.warning(f"Skipping catalog row {row.get('id')}: {e}")
        return products
