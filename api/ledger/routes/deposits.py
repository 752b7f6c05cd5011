"""API routes for operator funding deposits"""

from fastapi import APIRouter, Depends
from ledger.dependencies.services import get_deposit_service, get_ledger_service
from ledger.schemas.base import PaginationSchema
from ledger.schemas.deposit import (
    FundingDepositCreateSchema,
    FundingDepositFiltersSchema,
    FundingDepositSchema,
)
from ledger.services.deposit import FundingDepositService
from ledger.services.ledger import LedgerService

deposits_router = APIRouter(prefix="/treasury/deposits", tags=["Deposits"])


@deposits_router.post("", response_model=FundingDepositSchema)
def create_deposit(
    deposit: FundingDepositCreateSchema,
    ledger_service: LedgerService = Depends(get_ledger_service),
):
    return ledger_service.deposit(
        deposit.deposited_by,
        deposit.usd_amount,
        deposit_method=deposit.deposit_method,
        notes=deposit.notes,
        external_transaction_id=deposit.external_transaction_id,
        details=deposit.details,
    )


@deposits_router.get(
    "/external/{external_transaction_id}", response_model=FundingDepositSchema
)
def read_deposit_by_external_id(
    external_transaction_id: str,
    deposit_service: FundingDepositService = Depends(get_deposit_service),
):
    return deposit_service.get_by_external_id(external_transaction_id)


@deposits_router.get("/{deposit_id}", response_model=FundingDepositSchema)
def read_deposit(
    deposit_id: int,
    deposit_service: FundingDepositService = Depends(get_deposit_service),
):
    return deposit_service.get(deposit_id)


@deposits_router.get("", response_model=PaginationSchema[FundingDepositSchema])
def read_deposits(
    filters: FundingDepositFiltersSchema = Depends(),
    skip: int = 0,
    limit: int = 100,
    deposit_service: FundingDepositService = Depends(get_deposit_service),
):
    return deposit_service.get_all(filters, skip, limit)
