"""Funding deposit service"""

from ledger.errors.common import NotFoundError
from ledger.models.funding_deposit import FundingDeposit
from ledger.schemas.deposit import FundingDepositFiltersSchema
from ledger.services.base import BaseService
from sqlalchemy.orm import Query


class FundingDepositService(BaseService[FundingDeposit]):
    model = FundingDeposit

    def _apply_filters(  # type: ignore[override]
        self, query: Query[FundingDeposit], filters: FundingDepositFiltersSchema
    ) -> Query[FundingDeposit]:
        if filters.deposited_by is not None:
            query = query.filter(self.model.deposited_by == filters.deposited_by)
        if filters.deposit_method is not None:
            query = query.filter(self.model.deposit_method == filters.deposit_method)
        if filters.status is not None:
            query = query.filter(self.model.status == filters.status)
        if filters.external_transaction_id is not None:
            query = query.filter(
                self.model.external_transaction_id == filters.external_transaction_id
            )
        return query

    def find_by_external_id(self, external_transaction_id: str) -> FundingDeposit | None:
        return (
            self.db.query(self.model)
            .filter(self.model.external_transaction_id == external_transaction_id)
            .first()
        )

    def get_by_external_id(self, external_transaction_id: str) -> FundingDeposit:
        db_obj = self.find_by_external_id(external_transaction_id)
        if not db_obj:
            raise NotFoundError(
                f"{self.model.__name__} external_transaction_id={external_transaction_id}"
            )
        return db_obj

    def get_history(self) -> list[FundingDeposit]:
        return (
            self.db.query(self.model)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .all()
        )
