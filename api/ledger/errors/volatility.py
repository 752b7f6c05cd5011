"""Volatility guard errors"""

from decimal import Decimal

from ledger.errors.base import ApplicationError


class VolatilityHalt(ApplicationError):
    error_code = 8101
    error = "Distribution halted, extreme volatility"
    http_code = 503

    def __init__(self, change_percent: Decimal | None = None, where: str | None = None):
        self.change_percent = change_percent
        details = (
            f"price moved {change_percent:.2f}%" if change_percent is not None else None
        )
        super().__init__(details, where)


class OracleUnavailable(VolatilityHalt):
    """No trustworthy price: the market state is unknown, so it is treated as extreme."""

    error_code = 8102
    error = "Distribution halted, price oracle unavailable"

    def __init__(self, details: str | None = None, where: str | None = None):
        self.change_percent = None
        ApplicationError.__init__(self, details, where)


class VolatilityCapExceeded(ApplicationError):
    error_code = 8103
    error = "Requested amount exceeds the safe distribution cap"
    http_code = 409

    def __init__(
        self,
        requested: Decimal,
        allowed: Decimal,
        tier: str,
        where: str | None = None,
    ):
        self.requested = requested
        self.allowed = allowed
        self.tier = tier
        super().__init__(
            f"requested {requested} tokens, allowed {allowed} tokens at {tier} risk",
            where,
        )
