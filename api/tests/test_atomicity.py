"""Balance updates and their log entries commit together or not at all"""

from decimal import Decimal

import pytest
from ledger.models.funding_deposit import FundingDeposit
from ledger.models.reserve_transaction import ReserveTransaction
from ledger.services.ledger import LedgerService


class LogWriteFailed(Exception):
    pass


@pytest.fixture
def failing_log(monkeypatch):
    """Fail right before the log entry is written, after balances changed."""

    def fail(self, account, **values):
        assert account.total_funding > 0 or account.total_distributed > 0
        raise LogWriteFailed()

    monkeypatch.setattr(LedgerService, "_append", fail)


class TestAtomicity:
    def test_deposit_fault_leaves_nothing(self, make_container, pin_price, failing_log):
        container = make_container()
        with pytest.raises(LogWriteFailed):
            container.ledger_service.deposit("operator", Decimal("100.00"))

        check = make_container()
        account = check.treasury_service.get_active()
        assert account.total_funding == Decimal("0.00")
        assert account.token_reserve == Decimal("0")
        assert check.db.query(FundingDeposit).count() == 0
        assert check.db.query(ReserveTransaction).count() == 0

    def test_fund(self, make_container, pin_price):
        make_container().ledger_service.deposit("operator", Decimal("100.00"))

    def test_distribution_fault_leaves_nothing(
        self, make_container, pin_price, failing_log
    ):
        container = make_container()
        with pytest.raises(LogWriteFailed):
            container.ledger_service.distribute(Decimal("100"), "test")

        check = make_container()
        account = check.treasury_service.get_active()
        assert account.total_distributed == Decimal("0.00")
        assert account.token_reserve == Decimal("1000")
        assert check.db.query(ReserveTransaction).count() == 1

    def test_reserve_credit_fault_leaves_nothing(
        self, make_container, pin_price, failing_log
    ):
        container = make_container()
        with pytest.raises(LogWriteFailed):
            container.ledger_service.add_to_reserve(
                Decimal("50"), Decimal("5.00"), "on-chain inflow"
            )

        account = make_container().treasury_service.get_active()
        assert account.total_funding == Decimal("100.00")
        assert account.token_reserve == Decimal("1000")

    def test_session_usable_after_fault(self, make_container, pin_price, failing_log):
        container = make_container()
        with pytest.raises(LogWriteFailed):
            container.ledger_service.distribute(Decimal("1"), "test")
        stats = container.ledger_service.get_stats()
        assert stats.total_distributed.value == Decimal("0.00")
