# storefront/tasks/reconcile.py
from sqlalchemy.exc import SQLAlchemyError

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.domain.errors import RemoteStoreError
from storefront.repos.orphan_repo import OrphanRepo
from storefront.services.order_service import OrderService
from storefront.services.remote_store import RemoteStoreGateway
from storefront.utils.settings import RECONCILE_MAX_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_orphaned_orders(db, gateway: RemoteStoreGateway, max_attempts: int = RECONCILE_MAX_ATTEMPTS) -> dict:
    repo = OrphanRepo(db)
    service = OrderService(gateway, orphan_repo=repo)

    orphans = repo.list_unresolved(max_attempts=max_attempts)
    logger.info(f"Found {len(orphans)} orphaned orders to reconcile")

    resolved, failed = [], []
    for orphan in orphans:
        header_id = orphan.header_id
        try:
            service.retry_orphan(header_id)
            resolved.append(header_id)
        except RemoteStoreError as e:
            failed.append(header_id)
            logger.warning(f"Reconciling order {orphan.header_id} failed: {e}")
            if orphan.attempts >= max_attempts:
                logger.warning(
                    f"Giving up on order {orphan.header_id} after {orphan.attempts} attempts, "
                    f"needs manual support action"
                )
        except SQLAlchemyError as e:
            #bookkeeping failed, the next run picks this orphan up again
            repo.rollback()
            failed.append(header_id)
            logger.error(f"Local bookkeeping for order {header_id} failed: {e}")

    return {"resolved": resolved, "failed": failed}


@celery_app.task(name="storefront.tasks.reconcile.reconcile_orphaned_orders_task")
def reconcile_orphaned_orders_task():
    logger.info("Reconcile orphaned orders task started")

    db = SessionLocal()
    try:
        return reconcile_orphaned_orders(db, RemoteStoreGateway())
    finally:
        db.close()
