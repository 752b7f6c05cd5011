"""Reserve transaction service, read-only access to the treasury log"""

from ledger.models.reserve_transaction import ReserveTransaction
from ledger.schemas.reserve_transaction import ReserveTransactionFiltersSchema
from ledger.services.base import BaseService
from sqlalchemy.orm import Query

# upper bound for "recent transactions" requests
MAX_RECENT = 200


class ReserveTransactionService(BaseService[ReserveTransaction]):
    model = ReserveTransaction

    def _apply_filters(  # type: ignore[override]
        self,
        query: Query[ReserveTransaction],
        filters: ReserveTransactionFiltersSchema,
    ) -> Query[ReserveTransaction]:
        if filters.transaction_type is not None:
            query = query.filter(self.model.transaction_type == filters.transaction_type)
        if filters.related_entity_type is not None:
            query = query.filter(
                self.model.related_entity_type == filters.related_entity_type
            )
        if filters.related_entity_id is not None:
            query = query.filter(self.model.related_entity_id == filters.related_entity_id)
        if filters.description is not None:
            query = query.filter(
                self.model.description.ilike(f"%{filters.description}%")
            )
        return query

    def get_recent(self, limit: int = 50) -> list[ReserveTransaction]:
        limit = min(max(limit, 1), MAX_RECENT)
        return (
            self.db.query(self.model)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(limit)
            .all()
        )

    def replay(self) -> list[ReserveTransaction]:
        """Every log entry in the order it was written."""
        return (
            self.db.query(self.model)
            .order_by(self.model.created_at, self.model.id)
            .all()
        )
