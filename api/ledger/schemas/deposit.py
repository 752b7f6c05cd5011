"""DTO for FundingDeposit"""

from decimal import Decimal

from ledger.models.funding_deposit import FundingDepositStatus
from ledger.schemas.base import (
    BaseFilterSchema,
    BaseReadSchema,
    BaseSchema,
    CurrencyDecimal,
    PriceDecimal,
    TokenDecimal,
)
from pydantic import field_validator


class FundingDepositSchema(BaseReadSchema):
    treasury_account_id: int
    deposited_by: str
    deposit_amount: CurrencyDecimal
    tokens_purchased: TokenDecimal
    token_price: PriceDecimal
    price_source: str
    deposit_method: str
    status: FundingDepositStatus
    external_transaction_id: str | None = None
    details: dict | None = None
    notes: str | None = None


class FundingDepositCreateSchema(BaseSchema):
    deposited_by: str
    usd_amount: Decimal
    deposit_method: str = "manual"
    notes: str | None = None
    external_transaction_id: str | None = None
    details: dict | None = None

    @field_validator("usd_amount")
    def amount_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        return v


class FundingDepositFiltersSchema(BaseFilterSchema):
    deposited_by: str | None = None
    deposit_method: str | None = None
    status: FundingDepositStatus | None = None
    external_transaction_id: str | None = None
