"""DTO for the treasury ledger"""

from decimal import Decimal
from typing import Literal

from ledger.schemas.base import (
    BaseSchema,
    CurrencyDecimal,
    PercentDecimal,
    PriceDecimal,
    TokenDecimal,
)
from pydantic import field_validator


class TreasuryStatsSchema(BaseSchema):
    total_funding: CurrencyDecimal
    total_distributed: CurrencyDecimal
    available_funding: CurrencyDecimal
    token_reserve: TokenDecimal
    token_price: PriceDecimal | None = None
    price_source: str | None = None
    # USD value of the token reserve at the current price
    token_reserve_value: CurrencyDecimal | None = None
    # percent of total funding already distributed
    liability_ratio: PercentDecimal
    is_healthy: bool


class FundingStatusSchema(BaseSchema):
    can_distribute_rewards: bool
    current_balance: CurrencyDecimal
    minimum_balance: CurrencyDecimal
    warning_threshold: CurrencyDecimal


class HealthCheckSchema(BaseSchema):
    status: Literal["healthy", "warning", "critical"]
    message: str
    recommendations: list[str]


class CanDistributeSchema(BaseSchema):
    ok: bool
    reason: str | None = None
    error_code: int | None = None
    current_price: PriceDecimal | None = None
    risk_tier: str | None = None
    max_safe_tokens: TokenDecimal | None = None


class DistributionRequestSchema(BaseSchema):
    token_amount: Decimal
    description: str
    related_entity_type: str | None = None
    related_entity_id: str | None = None

    @field_validator("token_amount")
    def amount_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        return v


class DistributionResultSchema(BaseSchema):
    tokens_distributed: TokenDecimal
    cash_value: CurrencyDecimal
    remaining_balance: CurrencyDecimal
    token_reserve: TokenDecimal
    token_price: PriceDecimal
    transaction_id: int


class ReserveCreditSchema(BaseSchema):
    token_amount: Decimal
    cash_value: Decimal
    description: str
    related_entity_type: str | None = None
    related_entity_id: str | None = None

    @field_validator("token_amount")
    def amount_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        return v

    @field_validator("cash_value")
    def cash_must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError("Cash value can not be negative")
        return v


class RiskAssessmentSchema(BaseSchema):
    tier: str
    halted: bool
    change_percent: PercentDecimal | None = None
    max_safe_tokens: TokenDecimal
    token_price: PriceDecimal | None = None
    price_source: str | None = None
    oracle_available: bool
    recommendation: str


class TreasuryConfigSchema(BaseSchema):
    token_symbol: str
    minimum_balance: CurrencyDecimal
    warning_threshold: CurrencyDecimal
    critical_threshold: CurrencyDecimal
    fallback_token_price: PriceDecimal | None = None
    halt_on_fallback_price: bool
    volatility_window_minutes: int
    medium_volatility_percent: PercentDecimal
    high_volatility_percent: PercentDecimal
    extreme_volatility_percent: PercentDecimal
    lock_timeout_seconds: float
