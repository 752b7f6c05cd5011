"""DTO for ReserveTransaction"""

from ledger.models.reserve_transaction import ReserveTransactionType
from ledger.schemas.base import (
    BaseFilterSchema,
    BaseReadSchema,
    CurrencyDecimal,
    PriceDecimal,
    TokenDecimal,
)


class ReserveTransactionSchema(BaseReadSchema):
    treasury_account_id: int
    transaction_type: ReserveTransactionType
    token_amount: TokenDecimal
    cash_value: CurrencyDecimal
    token_price: PriceDecimal | None = None
    balance_after: CurrencyDecimal
    token_reserve_after: TokenDecimal
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    funding_deposit_id: int | None = None
    description: str


class ReserveTransactionFiltersSchema(BaseFilterSchema):
    transaction_type: ReserveTransactionType | None = None
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    description: str | None = None
