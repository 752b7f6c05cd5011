"""Treasury ledger errors"""

from ledger.errors.base import ApplicationError


class InsufficientFunding(ApplicationError):
    error_code = 8001
    error = "Insufficient funding"
    http_code = 409


class InsufficientReserve(ApplicationError):
    error_code = 8002
    error = "Insufficient token reserve"
    http_code = 409


class MinimumBalanceBreach(ApplicationError):
    error_code = 8003
    error = "Distribution would leave balance below minimum threshold"
    http_code = 409


class LedgerBusy(ApplicationError):
    """Lock on the treasury row was not acquired in time. Nothing was written."""

    error_code = 8004
    error = "Ledger is busy, try again later"
    http_code = 503
    retryable = True
