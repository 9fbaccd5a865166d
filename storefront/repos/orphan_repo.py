# storefront/repos/orphan_repo.py
import json
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.orphaned_order import OrphanedOrderModel


class OrphanRepo:
    def __init__(self, db: Session):
        self.db = db

    def record(self, header_id: str, customer_id: str, lines: List[Dict[str, Any]]) -> OrphanedOrderModel:
        existing = self.get(header_id)
        if existing:
            return existing

        orphan = OrphanedOrderModel(
            header_id=header_id,
            customer_id=customer_id,
            lines_json=json.dumps(lines),
        )
        self.db.add(orphan)
        self.db.commit()
        self.db.refresh(orphan)
        return orphan

    def get(self, header_id: str) -> OrphanedOrderModel | None:
        return self.db.execute(
            select(OrphanedOrderModel).where(OrphanedOrderModel.header_id == header_id)
        ).scalar_one_or_none()

    def list_unresolved(self, max_attempts: int | None = None) -> List[OrphanedOrderModel]:
        query = select(OrphanedOrderModel).where(OrphanedOrderModel.resolved_at.is_(None))
        if max_attempts is not None:
            query = query.where(OrphanedOrderModel.attempts < max_attempts)
        return list(self.db.execute(query.order_by(OrphanedOrderModel.id)).scalars().all())

    def mark_attempt(self, header_id: str, error: str) -> OrphanedOrderModel | None:
        orphan = self.get(header_id)
        if orphan:
            orphan.attempts += 1
            orphan.last_error = error
            self.db.commit()
            self.db.refresh(orphan)
        return orphan

    def mark_resolved(self, header_id: str) -> OrphanedOrderModel | None:
        orphan = self.get(header_id)
        if orphan:
            orphan.attempts += 1
            orphan.last_error = None
            orphan.resolved_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(orphan)
        return orphan

    @staticmethod
    def lines_of(orphan: OrphanedOrderModel) -> List[Dict[str, Any]]:
        return json.loads(orphan.lines_json)

    def rollback(self) -> None:
        self.db.rollback()
