"""Funding deposit errors"""

from ledger.errors.base import ApplicationError


class DuplicateExternalDeposit(ApplicationError):
    error_code = 7001
    error = "Deposit with this external transaction id is already recorded"
    http_code = 409
