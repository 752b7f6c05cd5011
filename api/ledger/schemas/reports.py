"""Schemas for treasury reports"""

from datetime import datetime
from typing import Literal

from ledger.schemas.base import (
    BaseSchema,
    CurrencyDecimal,
    PercentDecimal,
    PriceDecimal,
    TokenDecimal,
)
from ledger.schemas.treasury import (
    FundingStatusSchema,
    HealthCheckSchema,
    TreasuryStatsSchema,
)


class FundingRunwaySchema(BaseSchema):
    # None when nothing was distributed recently, the runway is unbounded
    estimated_days: int | None = None
    based_on_daily_average: CurrencyDecimal
    confidence: Literal["high", "medium", "low"]
    distributions_in_window: int
    window_days: int


class HealthScoreComponentSchema(BaseSchema):
    name: str
    weight: PercentDecimal
    score: PercentDecimal


class HealthScoreSchema(BaseSchema):
    score: PercentDecimal
    grade: Literal["A", "B", "C", "D", "F"]
    risk_tier: str
    components: list[HealthScoreComponentSchema]


class PerformanceDeltaSchema(BaseSchema):
    period: Literal["day", "week", "all_time"]
    reference_price: PriceDecimal | None = None
    reference_at: datetime | None = None
    price_change_percent: PercentDecimal | None = None
    value_change: CurrencyDecimal | None = None


class PortfolioPerformanceSchema(BaseSchema):
    token_reserve: TokenDecimal
    current_price: PriceDecimal | None = None
    current_value: CurrencyDecimal | None = None
    samples: int
    deltas: list[PerformanceDeltaSchema]


class WeeklyActivitySchema(BaseSchema):
    recent_deposits: int
    recent_distributions: int


class TreasurySummarySchema(BaseSchema):
    stats: TreasuryStatsSchema
    weekly_activity: WeeklyActivitySchema


class ReportPointSchema(BaseSchema):
    created_at: datetime
    cash_value: CurrencyDecimal
    token_amount: TokenDecimal


class TreasuryReportSchema(BaseSchema):
    period: Literal["7d", "30d", "90d", "1y"]
    funding_total: CurrencyDecimal
    distribution_total: CurrencyDecimal
    funding_data: list[ReportPointSchema]
    distribution_data: list[ReportPointSchema]


class TreasuryStatusSchema(BaseSchema):
    stats: TreasuryStatsSchema
    funding: FundingStatusSchema
    health: HealthCheckSchema
    estimated_funding_days: FundingRunwaySchema

