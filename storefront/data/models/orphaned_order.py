# storefront/data/models/orphaned_order.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime

from storefront.data.database import Base


class OrphanedOrderModel(Base):
    """Order header written remotely whose line items were never attached."""

    __tablename__ = "orphaned_orders"

    id = Column(Integer, primary_key=True)
    header_id = Column(String, nullable=False, unique=True, index=True)
    customer_id = Column(String, nullable=False)

    # frozen order lines as JSON: [{"product_id", "quantity", "unit_price"}]
    lines_json = Column(Text, nullable=False)

    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    resolved_at = Column(DateTime(timezone=True), nullable=True)
