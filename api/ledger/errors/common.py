"""Common application errors, may be raised from several services"""

from ledger.errors.base import ApplicationError


class NotFoundError(ApplicationError):
    error_code = 1404
    error = "Not found"
    http_code = 404


class InvalidAmount(ApplicationError):
    error_code = 1422
    error = "Invalid amount"
    http_code = 422
