"""API routes for the treasury ledger"""

from dataclasses import asdict
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query
from ledger.dependencies.services import (
    get_ledger_service,
    get_price_service,
    get_reports_service,
    get_reserve_transaction_service,
)
from ledger.errors.common import InvalidAmount
from ledger.models.base import utcnow
from ledger.models.types import quantize_tokens, quantize_usd
from ledger.schemas.price import (
    ConversionSchema,
    MarketDataSchema,
    PriceSchema,
    VolatilitySchema,
)
from ledger.schemas.reports import (
    FundingRunwaySchema,
    HealthScoreSchema,
    PortfolioPerformanceSchema,
    TreasuryReportSchema,
    TreasuryStatusSchema,
    TreasurySummarySchema,
)
from ledger.schemas.reserve_transaction import ReserveTransactionSchema
from ledger.schemas.treasury import (
    CanDistributeSchema,
    DistributionRequestSchema,
    DistributionResultSchema,
    FundingStatusSchema,
    HealthCheckSchema,
    ReserveCreditSchema,
    RiskAssessmentSchema,
    TreasuryConfigSchema,
    TreasuryStatsSchema,
)
from ledger.services.ledger import LedgerService
from ledger.services.price import TokenPriceService
from ledger.services.reports import ReportsService
from ledger.services.reserve_transaction import ReserveTransactionService

treasury_router = APIRouter(prefix="/treasury", tags=["Treasury"])


@treasury_router.get("/stats", response_model=TreasuryStatsSchema)
def read_stats(service: LedgerService = Depends(get_ledger_service)):
    return service.get_stats()


@treasury_router.get("/status", response_model=TreasuryStatusSchema)
def read_status(service: ReportsService = Depends(get_reports_service)):
    return service.get_status()


@treasury_router.get("/funding-status", response_model=FundingStatusSchema)
def read_funding_status(service: LedgerService = Depends(get_ledger_service)):
    return service.get_funding_status()


@treasury_router.get("/health", response_model=HealthCheckSchema)
def read_health(service: LedgerService = Depends(get_ledger_service)):
    return service.get_health_check()


@treasury_router.get("/health-score", response_model=HealthScoreSchema)
def read_health_score(service: ReportsService = Depends(get_reports_service)):
    return service.get_health_score()


@treasury_router.get("/runway", response_model=FundingRunwaySchema)
def read_runway(service: ReportsService = Depends(get_reports_service)):
    return service.get_estimated_funding_days()


@treasury_router.get("/portfolio", response_model=PortfolioPerformanceSchema)
def read_portfolio(service: ReportsService = Depends(get_reports_service)):
    return service.get_portfolio_performance()


@treasury_router.get("/risk", response_model=RiskAssessmentSchema)
def read_risk(service: ReportsService = Depends(get_reports_service)):
    return service.get_risk_assessment()


@treasury_router.get("/price", response_model=PriceSchema)
def read_price(service: TokenPriceService = Depends(get_price_service)):
    quote = service.get_current_price()
    reading = service.check_volatility()
    return PriceSchema(
        price=quote.price,
        source=quote.source,
        smoothed_price=service.get_smoothed_price(),
        market_data=(
            MarketDataSchema(**asdict(quote.market_data))
            if quote.market_data is not None
            else None
        ),
        volatility=VolatilitySchema(**asdict(reading)),
        last_updated=utcnow(),
    )


@treasury_router.get("/convert", response_model=ConversionSchema)
def convert(
    usd_amount: Decimal | None = None,
    token_amount: Decimal | None = None,
    service: TokenPriceService = Depends(get_price_service),
):
    if usd_amount is not None:
        tokens, quote = service.usd_to_tokens(usd_amount)
        usd = quantize_usd(usd_amount)
    elif token_amount is not None:
        usd, quote = service.tokens_to_usd(token_amount)
        tokens = quantize_tokens(token_amount)
    else:
        raise InvalidAmount("usd_amount or token_amount is required")
    return ConversionSchema(
        usd_amount=usd, token_amount=tokens, price=quote.price, source=quote.source
    )


@treasury_router.get("/config", response_model=TreasuryConfigSchema)
def read_config(service: ReportsService = Depends(get_reports_service)):
    return service.get_config()


@treasury_router.get("/summary", response_model=TreasurySummarySchema)
def read_summary(service: ReportsService = Depends(get_reports_service)):
    return service.get_summary()


@treasury_router.get("/reports", response_model=TreasuryReportSchema)
def read_report(
    period: Literal["7d", "30d", "90d", "1y"] = "30d",
    service: ReportsService = Depends(get_reports_service),
):
    return service.get_report(period)


@treasury_router.get("/recent", response_model=list[ReserveTransactionSchema])
def read_recent_transactions(
    limit: int = Query(50, ge=1),
    service: ReserveTransactionService = Depends(get_reserve_transaction_service),
):
    return service.get_recent(limit)


@treasury_router.get("/can-distribute", response_model=CanDistributeSchema)
def can_distribute(
    token_amount: Decimal,
    service: LedgerService = Depends(get_ledger_service),
):
    return service.can_distribute(token_amount)


@treasury_router.post("/distribute", response_model=DistributionResultSchema)
def distribute(
    request: DistributionRequestSchema,
    service: LedgerService = Depends(get_ledger_service),
):
    return service.distribute(
        request.token_amount,
        request.description,
        related_entity_type=request.related_entity_type,
        related_entity_id=request.related_entity_id,
    )


@treasury_router.post("/reserve", response_model=ReserveTransactionSchema)
def add_to_reserve(
    credit: ReserveCreditSchema,
    service: LedgerService = Depends(get_ledger_service),
):
    return service.add_to_reserve(
        credit.token_amount,
        credit.cash_value,
        credit.description,
        related_entity_type=credit.related_entity_type,
        related_entity_id=credit.related_entity_id,
    )
