"""Price oracle errors"""

from ledger.errors.base import ApplicationError


class PriceUnavailable(ApplicationError):
    error_code = 8201
    error = "Token price is unavailable from every source"
    http_code = 503
