"""Volatility guard: the single admission-control policy for distributions"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal

from fastapi import Depends
from ledger.config import Config, get_config
from ledger.models.types import quantize_tokens
from ledger.services.price import TokenPriceService

logger = logging.getLogger(__name__)


class RiskTier(enum.Enum):
    NONE = "none"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


@dataclass(frozen=True)
class RiskAssessment:
    tier: RiskTier
    max_safe_tokens: Decimal
    change_percent: Decimal | None = None
    price: Decimal | None = None
    price_source: str | None = None
    oracle_available: bool = True
    recommendation: str = ""

    @property
    def halted(self) -> bool:
        return self.tier is RiskTier.EXTREME


class VolatilityGuard:
    """Classifies the latest price swing and caps distributions accordingly.

    | tier    | swing        | policy                       |
    |---------|--------------|------------------------------|
    | none    | <= 5%        | full reserve                 |
    | medium  | > 5%, <= 10% | 75% of current token reserve |
    | high    | > 10%, <= 20%| 50% of current token reserve |
    | extreme | > 20%        | halt                         |

    An oracle that cannot produce a market price fails closed: extreme.
    """

    def __init__(
        self,
        price_service: TokenPriceService = Depends(),
        config: Config = Depends(get_config),
    ):
        self._price_service = price_service
        self.config = config

    def classify(self, change_percent: Decimal) -> RiskTier:
        swing = abs(change_percent)
        if swing > self.config.extreme_volatility_percent:
            return RiskTier.EXTREME
        if swing > self.config.high_volatility_percent:
            return RiskTier.HIGH
        if swing > self.config.medium_volatility_percent:
            return RiskTier.MEDIUM
        return RiskTier.NONE

    def max_safe_tokens(self, tier: RiskTier, token_reserve: Decimal) -> Decimal:
        if tier is RiskTier.EXTREME:
            return Decimal(0)
        if tier is RiskTier.HIGH:
            return quantize_tokens(token_reserve * self.config.high_volatility_cap)
        if tier is RiskTier.MEDIUM:
            return quantize_tokens(token_reserve * self.config.medium_volatility_cap)
        return token_reserve

    def assess(self, token_reserve: Decimal) -> RiskAssessment:
        try:
            quote = self._price_service.get_current_price()
        except Exception:
            # unknown market state is never safe
            logger.exception("Price oracle unavailable, distributions halted")
            return RiskAssessment(
                tier=RiskTier.EXTREME,
                max_safe_tokens=Decimal(0),
                oracle_available=False,
                recommendation="Price oracle unavailable - distributions halted",
            )

        # a stale quote says nothing about the current market either
        if quote.source == "cache_stale" or (
            quote.source == "fallback" and self.config.halt_on_fallback_price
        ):
            logger.error(
                "Only a %s price %s is available, distributions halted",
                quote.source,
                quote.price,
            )
            return RiskAssessment(
                tier=RiskTier.EXTREME,
                max_safe_tokens=Decimal(0),
                price=quote.price,
                price_source=quote.source,
                oracle_available=False,
                recommendation="Market price unknown - distributions halted",
            )

        reading = self._price_service.check_volatility()
        tier = self.classify(reading.change_percent)
        if tier is not RiskTier.NONE:
            logger.warning(
                "Price moved %.2f%% within the volatility window, risk tier %s",
                reading.change_percent,
                tier.value,
            )
        recommendation = reading.recommendation
        if tier is RiskTier.EXTREME:
            recommendation = "Extreme volatility - distributions halted"
        return RiskAssessment(
            tier=tier,
            max_safe_tokens=self.max_safe_tokens(tier, token_reserve),
            change_percent=reading.change_percent,
            price=quote.price,
            price_source=quote.source,
            recommendation=recommendation,
        )
