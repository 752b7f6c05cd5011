"""Service dependency providers."""

from fastapi import Depends
from ledger.config import Config, get_config
from ledger.uow import get_uow
from sqlalchemy.orm import Session


class ServiceContainer:
    """Request-scoped service container."""

    def __init__(self, db: Session, config: Config):
        self.db = db
        self.config = config
        self._treasury_service = None
        self._price_service = None
        self._volatility_guard = None
        self._deposit_service = None
        self._reserve_transaction_service = None
        self._ledger_service = None
        self._reports_service = None

    @property
    def treasury_service(self):
        if self._treasury_service is None:
            from ledger.services.treasury import TreasuryAccountService

            self._treasury_service = TreasuryAccountService(
                db=self.db, config=self.config
            )
        return self._treasury_service

    @property
    def price_service(self):
        if self._price_service is None:
            from ledger.services.price import TokenPriceService

            self._price_service = TokenPriceService(config=self.config)
        return self._price_service

    @property
    def volatility_guard(self):
        if self._volatility_guard is None:
            from ledger.services.volatility import VolatilityGuard

            self._volatility_guard = VolatilityGuard(
                price_service=self.price_service, config=self.config
            )
        return self._volatility_guard

    @property
    def deposit_service(self):
        if self._deposit_service is None:
            from ledger.services.deposit import FundingDepositService

            self._deposit_service = FundingDepositService(db=self.db)
        return self._deposit_service

    @property
    def reserve_transaction_service(self):
        if self._reserve_transaction_service is None:
            from ledger.services.reserve_transaction import ReserveTransactionService

            self._reserve_transaction_service = ReserveTransactionService(db=self.db)
        return self._reserve_transaction_service

    @property
    def ledger_service(self):
        if self._ledger_service is None:
            from ledger.services.ledger import LedgerService

            self._ledger_service = LedgerService(
                db=self.db,
                treasury_service=self.treasury_service,
                price_service=self.price_service,
                volatility_guard=self.volatility_guard,
                deposit_service=self.deposit_service,
                config=self.config,
            )
        return self._ledger_service

    @property
    def reports_service(self):
        if self._reports_service is None:
            from ledger.services.reports import ReportsService

            self._reports_service = ReportsService(
                db=self.db,
                ledger_service=self.ledger_service,
                treasury_service=self.treasury_service,
                price_service=self.price_service,
                config=self.config,
            )
        return self._reports_service


def get_container(
    db: Session = Depends(get_uow),
    config: Config = Depends(get_config),
) -> ServiceContainer:
    return ServiceContainer(db, config)


def get_price_service(container: ServiceContainer = Depends(get_container)):
    return container.price_service


def get_deposit_service(container: ServiceContainer = Depends(get_container)):
    return container.deposit_service


def get_reserve_transaction_service(
    container: ServiceContainer = Depends(get_container),
):
    return container.reserve_transaction_service


def get_ledger_service(container: ServiceContainer = Depends(get_container)):
    return container.ledger_service


def get_reports_service(container: ServiceContainer = Depends(get_container)):
    return container.reports_service
