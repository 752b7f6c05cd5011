"""Read-only treasury reports: runway, health score, portfolio performance"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from decimal import ROUND_FLOOR, Decimal

from fastapi import Depends
from ledger.config import Config, get_config
from ledger.errors.price import PriceUnavailable
from ledger.models.base import utcnow
from ledger.models.funding_deposit import FundingDeposit
from ledger.models.price_sample import PriceSample
from ledger.models.reserve_transaction import (
    ReserveTransaction,
    ReserveTransactionType,
)
from ledger.models.types import quantize, quantize_usd
from ledger.schemas.reports import (
    FundingRunwaySchema,
    HealthScoreComponentSchema,
    HealthScoreSchema,
    PerformanceDeltaSchema,
    PortfolioPerformanceSchema,
    ReportPointSchema,
    TreasuryReportSchema,
    TreasuryStatusSchema,
    TreasurySummarySchema,
    WeeklyActivitySchema,
)
from ledger.schemas.treasury import RiskAssessmentSchema, TreasuryConfigSchema
from ledger.services.ledger import LedgerService
from ledger.services.price import TokenPriceService
from ledger.services.treasury import TreasuryAccountService
from ledger.services.volatility import RiskTier
from ledger.uow import get_uow
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

REPORT_PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}

# weights of the health score components, percent
HEALTH_WEIGHTS = {
    "funding_adequacy": Decimal(40),
    "volatility": Decimal(30),
    "liquidity": Decimal(20),
    "concentration": Decimal(10),
}

VOLATILITY_SCORES = {
    RiskTier.NONE: Decimal(100),
    RiskTier.MEDIUM: Decimal(60),
    RiskTier.HIGH: Decimal(30),
    RiskTier.EXTREME: Decimal(0),
}

GRADES = [
    (Decimal(90), "A"),
    (Decimal(80), "B"),
    (Decimal(70), "C"),
    (Decimal(60), "D"),
]

HUNDRED = Decimal(100)


def grade_for(score: Decimal) -> str:
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade
    return "F"


class ReportsService:
    def __init__(
        self,
        db: Session = Depends(get_uow),
        ledger_service: LedgerService = Depends(),
        treasury_service: TreasuryAccountService = Depends(),
        price_service: TokenPriceService = Depends(),
        config: Config = Depends(get_config),
    ):
        self.db = db
        self._ledger_service = ledger_service
        self._treasury_service = treasury_service
        self._price_service = price_service
        self.config = config

    def _transactions_since(
        self, transaction_type: ReserveTransactionType, since: datetime
    ) -> list[ReserveTransaction]:
        return (
            self.db.query(ReserveTransaction)
            .filter(
                ReserveTransaction.transaction_type == transaction_type,
                ReserveTransaction.created_at >= since,
            )
            .order_by(ReserveTransaction.created_at, ReserveTransaction.id)
            .all()
        )

    # --- runway ------------------------------------------------------------
    def get_estimated_funding_days(self) -> FundingRunwaySchema:
        """Days until available funding runs out at the recent distribution rate."""
        now = utcnow()
        window_days = self.config.runway_window_days
        distributions = self._transactions_since(
            ReserveTransactionType.DISTRIBUTION, now - timedelta(days=window_days)
        )
        count = len(distributions)
        if count > 10:
            confidence = "high"
        elif count > 5:
            confidence = "medium"
        else:
            confidence = "low"

        if not distributions:
            return FundingRunwaySchema(
                estimated_days=None,
                based_on_daily_average=Decimal(0),
                confidence=confidence,
                distributions_in_window=0,
                window_days=window_days,
            )

        # sums are done here, SQLite keeps the amounts as text
        spent = sum((t.cash_value for t in distributions), Decimal(0))
        elapsed = (now - distributions[0].created_at).days
        days = max(1, min(window_days, elapsed))
        daily_average = spent / days

        available = self._treasury_service.get_active().available_funding
        estimated_days = None
        if daily_average > 0:
            estimated_days = int(
                (max(available, Decimal(0)) / daily_average).to_integral_value(
                    rounding=ROUND_FLOOR
                )
            )
        return FundingRunwaySchema(
            estimated_days=estimated_days,
            based_on_daily_average=quantize_usd(daily_average),
            confidence=confidence,
            distributions_in_window=count,
            window_days=window_days,
        )

    # --- health score ------------------------------------------------------
    def _funding_adequacy(self, available: Decimal) -> Decimal:
        if available < self.config.minimum_balance:
            return Decimal(0)
        if self.config.warning_threshold <= 0:
            return HUNDRED
        return min(HUNDRED, available / self.config.warning_threshold * HUNDRED)

    @staticmethod
    def _liquidity(reserve_value: Decimal | None, available: Decimal) -> Decimal:
        if reserve_value is None or available <= 0:
            return Decimal(0)
        return min(Decimal(1), reserve_value / available) * HUNDRED

    def _concentration(self) -> Decimal:
        """Penalises a distribution log dominated by one kind of recipient."""
        since = utcnow() - timedelta(days=self.config.runway_window_days)
        distributions = self._transactions_since(
            ReserveTransactionType.DISTRIBUTION, since
        )
        if not distributions:
            return HUNDRED
        totals: Counter = Counter()
        for transaction in distributions:
            totals[transaction.related_entity_type or "unspecified"] += (
                transaction.cash_value
            )
        overall = sum(totals.values(), Decimal(0))
        if overall <= 0:
            return HUNDRED
        top_share = max(totals.values()) / overall
        if top_share <= Decimal("0.5"):
            return HUNDRED
        # 50% share scores 100, a single recipient type scores 0
        return max(Decimal(0), (1 - top_share) / Decimal("0.5") * HUNDRED)

    def get_health_score(self) -> HealthScoreSchema:
        account = self._treasury_service.get_active()
        available = account.available_funding
        assessment = self._ledger_service.get_risk_assessment()
        reserve_value = None
        if assessment.price is not None:
            reserve_value = account.token_reserve * assessment.price

        scores = {
            "funding_adequacy": self._funding_adequacy(available),
            "volatility": VOLATILITY_SCORES[assessment.tier],
            "liquidity": self._liquidity(reserve_value, available),
            "concentration": self._concentration(),
        }
        total = sum(
            (scores[name] * weight / HUNDRED for name, weight in HEALTH_WEIGHTS.items()),
            Decimal(0),
        )
        total = quantize(total, 2)
        return HealthScoreSchema(
            score=total,
            grade=grade_for(total),
            risk_tier=assessment.tier.value,
            components=[
                HealthScoreComponentSchema(
                    name=name, weight=weight, score=quantize(scores[name], 2)
                )
                for name, weight in HEALTH_WEIGHTS.items()
            ],
        )

    # --- portfolio ---------------------------------------------------------
    def _sample_at_or_before(self, moment: datetime) -> PriceSample | None:
        return (
            self.db.query(PriceSample)
            .filter(PriceSample.created_at <= moment)
            .order_by(PriceSample.created_at.desc(), PriceSample.id.desc())
            .first()
        )

    def _oldest_sample(self) -> PriceSample | None:
        return (
            self.db.query(PriceSample)
            .order_by(PriceSample.created_at, PriceSample.id)
            .first()
        )

    @staticmethod
    def _delta(
        period: str,
        reference: PriceSample | None,
        price: Decimal | None,
        token_reserve: Decimal,
    ) -> PerformanceDeltaSchema:
        if reference is None or price is None or reference.price <= 0:
            return PerformanceDeltaSchema(
                period=period,
                reference_price=reference.price if reference else None,
                reference_at=reference.created_at if reference else None,
            )
        return PerformanceDeltaSchema(
            period=period,
            reference_price=reference.price,
            reference_at=reference.created_at,
            price_change_percent=quantize(
                (price - reference.price) / reference.price * HUNDRED, 2
            ),
            value_change=quantize_usd(token_reserve * (price - reference.price)),
        )

    def get_portfolio_performance(self) -> PortfolioPerformanceSchema:
        """Value change of the current token reserve against sampled prices."""
        account = self._treasury_service.get_active()
        price = None
        try:
            price = self._price_service.get_current_price().price
        except PriceUnavailable:
            logger.warning("Portfolio performance computed without a token price")

        now = utcnow()
        references = [
            ("day", self._sample_at_or_before(now - timedelta(days=1))),
            ("week", self._sample_at_or_before(now - timedelta(days=7))),
            ("all_time", self._oldest_sample()),
        ]
        return PortfolioPerformanceSchema(
            token_reserve=account.token_reserve,
            current_price=price,
            current_value=(
                quantize_usd(account.token_reserve * price) if price is not None else None
            ),
            samples=self.db.query(PriceSample).count(),
            deltas=[
                self._delta(period, sample, price, account.token_reserve)
                for period, sample in references
            ],
        )

    # --- summaries ---------------------------------------------------------
    def get_summary(self) -> TreasurySummarySchema:
        week_ago = utcnow() - timedelta(days=7)
        recent_deposits = (
            self.db.query(FundingDeposit)
            .filter(FundingDeposit.created_at >= week_ago)
            .count()
        )
        recent_distributions = (
            self.db.query(ReserveTransaction)
            .filter(
                ReserveTransaction.transaction_type
                == ReserveTransactionType.DISTRIBUTION,
                ReserveTransaction.created_at >= week_ago,
            )
            .count()
        )
        return TreasurySummarySchema(
            stats=self._ledger_service.get_stats(),
            weekly_activity=WeeklyActivitySchema(
                recent_deposits=recent_deposits,
                recent_distributions=recent_distributions,
            ),
        )

    def get_report(self, period: str = "30d") -> TreasuryReportSchema:
        since = utcnow() - REPORT_PERIODS[period]
        funding = self._transactions_since(ReserveTransactionType.DEPOSIT, since)
        distributions = self._transactions_since(
            ReserveTransactionType.DISTRIBUTION, since
        )
        return TreasuryReportSchema(
            period=period,
            funding_total=sum((t.cash_value for t in funding), Decimal(0)),
            distribution_total=sum((t.cash_value for t in distributions), Decimal(0)),
            funding_data=[ReportPointSchema.model_validate(t) for t in funding],
            distribution_data=[
                ReportPointSchema.model_validate(t) for t in distributions
            ],
        )

    def get_status(self) -> TreasuryStatusSchema:
        return TreasuryStatusSchema(
            stats=self._ledger_service.get_stats(),
            funding=self._ledger_service.get_funding_status(),
            health=self._ledger_service.get_health_check(),
            estimated_funding_days=self.get_estimated_funding_days(),
        )

    def get_risk_assessment(self) -> RiskAssessmentSchema:
        assessment = self._ledger_service.get_risk_assessment()
        return RiskAssessmentSchema(
            tier=assessment.tier.value,
            halted=assessment.halted,
            change_percent=assessment.change_percent,
            max_safe_tokens=assessment.max_safe_tokens,
            token_price=assessment.price,
            price_source=assessment.price_source,
            oracle_available=assessment.oracle_available,
            recommendation=assessment.recommendation,
        )

    def get_config(self) -> TreasuryConfigSchema:
        config = self.config
        return TreasuryConfigSchema(
            token_symbol=config.token_symbol,
            minimum_balance=config.minimum_balance,
            warning_threshold=config.warning_threshold,
            critical_threshold=config.critical_threshold,
            fallback_token_price=config.fallback_token_price,
            halt_on_fallback_price=config.halt_on_fallback_price,
            volatility_window_minutes=config.volatility_window_minutes,
            medium_volatility_percent=config.medium_volatility_percent,
            high_volatility_percent=config.high_volatility_percent,
            extreme_volatility_percent=config.extreme_volatility_percent,
            lock_timeout_seconds=config.lock_timeout_seconds,
        )
