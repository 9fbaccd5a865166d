#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.storage_entry import StorageEntryModel
from storefront.data.models.orphaned_order import OrphanedOrderModel

__all__ = ["StorageEntryModel", "OrphanedOrderModel"]
