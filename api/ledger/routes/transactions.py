"""API routes for the reserve transaction log"""

from fastapi import APIRouter, Depends
from ledger.dependencies.services import get_reserve_transaction_service
from ledger.schemas.base import PaginationSchema
from ledger.schemas.reserve_transaction import (
    ReserveTransactionFiltersSchema,
    ReserveTransactionSchema,
)
from ledger.services.reserve_transaction import ReserveTransactionService

transactions_router = APIRouter(
    prefix="/treasury/transactions", tags=["Reserve transactions"]
)


@transactions_router.get("/{transaction_id}", response_model=ReserveTransactionSchema)
def read_transaction(
    transaction_id: int,
    service: ReserveTransactionService = Depends(get_reserve_transaction_service),
):
    return service.get(transaction_id)


@transactions_router.get(
    "", response_model=PaginationSchema[ReserveTransactionSchema]
)
def read_transactions(
    filters: ReserveTransactionFiltersSchema = Depends(),
    skip: int = 0,
    limit: int = 100,
    service: ReserveTransactionService = Depends(get_reserve_transaction_service),
):
    return service.get_all(filters, skip, limit)
