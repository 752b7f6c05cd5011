"""Ledger engine: deposits, distributions and their refusals"""

from dataclasses import replace
from decimal import Decimal

import pytest
from ledger.errors.common import InvalidAmount
from ledger.errors.deposit import DuplicateExternalDeposit
from ledger.errors.treasury import (
    InsufficientFunding,
    InsufficientReserve,
    MinimumBalanceBreach,
)
from ledger.models.funding_deposit import FundingDeposit
from ledger.models.reserve_transaction import (
    ReserveTransaction,
    ReserveTransactionType,
)
from ledger.models.treasury import TreasuryAccount


def _stats(container):
    return container.ledger_service.get_stats()


class TestLedgerScenario:
    """Funding 100.00 at price 0.10, then distributions against it."""

    def test_empty_treasury_is_created_lazily(self, make_container, pin_price):
        container = make_container()
        stats = _stats(container)
        assert stats.total_funding.value == Decimal("0")
        assert stats.token_reserve.value == Decimal("0")
        assert stats.is_healthy is False
        assert container.db.query(TreasuryAccount).count() == 1

    def test_deposit(self, make_container, pin_price):
        container = make_container()
        deposit = container.ledger_service.deposit(
            "operator", Decimal("100.00"), deposit_method="manual", notes="seed"
        )
        assert deposit.deposit_amount == Decimal("100.00")
        assert deposit.tokens_purchased == Decimal("1000")
        assert deposit.price_source == "dexscreener"

        stats = _stats(container)
        assert stats.total_funding.value == Decimal("100.00")
        assert stats.token_reserve.value == Decimal("1000")
        assert stats.available_funding.value == Decimal("100.00")

        transaction = deposit.reserve_transaction
        assert transaction.transaction_type == ReserveTransactionType.DEPOSIT
        assert transaction.balance_after == Decimal("100.00")
        assert transaction.token_reserve_after == Decimal("1000")
        assert transaction.related_entity_type == "funding_deposit"
        assert transaction.related_entity_id == str(deposit.id)

    def test_distribute_more_than_reserve(self, make_container, pin_price):
        container = make_container()
        with pytest.raises(InsufficientReserve):
            container.ledger_service.distribute(Decimal("1200"), "test")
        assert _stats(container).token_reserve.value == Decimal("1000")

    def test_distribute(self, make_container, pin_price):
        container = make_container()
        result = container.ledger_service.distribute(
            Decimal("500"),
            "check-in reward",
            related_entity_type="checkin",
            related_entity_id="42",
        )
        assert result.tokens_distributed.value == Decimal("500")
        assert result.cash_value.value == Decimal("50.00")
        assert result.remaining_balance.value == Decimal("50.00")

        stats = _stats(container)
        assert stats.total_distributed.value == Decimal("50.00")
        assert stats.token_reserve.value == Decimal("500")
        assert stats.available_funding.value == Decimal("50.00")
        assert str(stats.liability_ratio) == "50.00"

        transaction = container.reserve_transaction_service.get(
            result.transaction_id
        )
        assert transaction.transaction_type == ReserveTransactionType.DISTRIBUTION
        assert transaction.balance_after == Decimal("50.00")
        assert transaction.token_reserve_after == Decimal("500")
        assert transaction.related_entity_id == "42"

    def test_distribute_below_minimum_balance(
        self, make_container, pin_price, test_config
    ):
        container = make_container(
            replace(test_config, minimum_balance=Decimal("50.00"))
        )
        with pytest.raises(MinimumBalanceBreach):
            container.ledger_service.distribute(Decimal("1"), "test")
        stats = _stats(container)
        assert stats.total_distributed.value == Decimal("50.00")
        assert stats.token_reserve.value == Decimal("500")

    def test_deposit_on_top(self, make_container, pin_price):
        container = make_container()
        container.ledger_service.deposit("operator", Decimal("100.00"))
        stats = _stats(container)
        assert stats.total_funding.value == Decimal("200.00")
        assert stats.token_reserve.value == Decimal("1500")
        assert stats.available_funding.value == Decimal("150.00")

    def test_log_replays_to_balances(self, make_container):
        container = make_container()
        log = container.reserve_transaction_service.replay()
        funding = sum(
            t.cash_value
            for t in log
            if t.transaction_type == ReserveTransactionType.DEPOSIT
        )
        distributed = sum(
            t.cash_value
            for t in log
            if t.transaction_type == ReserveTransactionType.DISTRIBUTION
        )
        account = container.treasury_service.get_active()
        assert funding == account.total_funding
        assert distributed == account.total_distributed
        assert log[-1].balance_after == account.available_funding
        assert log[-1].token_reserve_after == account.token_reserve

    def test_stats_reads_are_idempotent(self, make_container, pin_price):
        container = make_container()
        assert _stats(container).dump() == _stats(container).dump()


class TestDistributionRefusals:
    def test_fund(self, make_container, pin_price):
        container = make_container()
        container.ledger_service.deposit("operator", Decimal("10.00"))
        assert _stats(container).token_reserve.value == Decimal("100")

    def test_insufficient_funding(self, make_container, pin_price):
        # tokens bought cheap, now worth more than the funding
        pin_price("0.20")
        container = make_container()
        with pytest.raises(InsufficientFunding):
            container.ledger_service.distribute(Decimal("60"), "test")

    def test_rejects_non_positive_amounts(self, make_container, pin_price):
        container = make_container()
        with pytest.raises(InvalidAmount):
            container.ledger_service.distribute(Decimal("0"), "test")
        with pytest.raises(InvalidAmount):
            container.ledger_service.distribute(Decimal("-5"), "test")
        with pytest.raises(InvalidAmount):
            container.ledger_service.deposit("operator", Decimal("0"))

    def test_rejects_amounts_beyond_stored_precision(self, make_container, pin_price):
        container = make_container()
        before = _stats(container).dump()
        with pytest.raises(InvalidAmount):
            container.ledger_service.distribute(Decimal("1e21"), "test")
        with pytest.raises(InvalidAmount):
            container.ledger_service.deposit("operator", Decimal("1e27"))
        assert _stats(container).dump() == before

        check = container.ledger_service.can_distribute(Decimal("1e21"))
        assert check.ok is False
        assert check.error_code == InvalidAmount.error_code

    def test_amounts_are_rounded_when_stored(self, make_container, pin_price):
        container = make_container()
        result = container.ledger_service.distribute(Decimal("1.123456789"), "test")
        assert result.tokens_distributed.value == Decimal("1.12345678")
        # 1.12345678 * 0.10 = 0.112345678 -> 0.11
        assert result.cash_value.value == Decimal("0.11")
        transaction = container.reserve_transaction_service.get(
            result.transaction_id
        )
        assert transaction.token_amount == Decimal("1.12345678")
        assert transaction.cash_value == Decimal("0.11")

    def test_can_distribute(self, make_container, pin_price):
        container = make_container()
        check = container.ledger_service.can_distribute(Decimal("10"))
        assert check.ok is True
        assert check.risk_tier == "none"

        check = container.ledger_service.can_distribute(Decimal("5000"))
        assert check.ok is False
        assert check.error_code == InsufficientReserve.error_code
        assert check.reason.startswith(InsufficientReserve.error)

    def test_refusals_leave_no_log_entries(self, make_container, pin_price):
        container = make_container()
        before = container.db.query(ReserveTransaction).count()
        with pytest.raises(InsufficientReserve):
            container.ledger_service.distribute(Decimal("5000"), "test")
        assert container.db.query(ReserveTransaction).count() == before


class TestDeposits:
    def test_duplicate_external_id_is_refused(self, make_container, pin_price):
        container = make_container()
        container.ledger_service.deposit(
            "operator",
            Decimal("25.00"),
            deposit_method="bank_transfer",
            external_transaction_id="wire-001",
            details={"bank": "test"},
        )
        with pytest.raises(DuplicateExternalDeposit):
            container.ledger_service.deposit(
                "operator", Decimal("25.00"), external_transaction_id="wire-001"
            )
        stats = _stats(container)
        assert stats.total_funding.value == Decimal("25.00")
        assert container.db.query(FundingDeposit).count() == 1

        found = container.deposit_service.get_by_external_id("wire-001")
        assert found.details == {"bank": "test"}
        assert found.deposit_method == "bank_transfer"

    def test_deposit_at_fallback_price(self, make_container, pin_price):
        pin_price("0.000005034116", source="fallback")
        container = make_container()
        deposit = container.ledger_service.deposit("operator", Decimal("1.00"))
        assert deposit.price_source == "fallback"
        assert Decimal("198644") < deposit.tokens_purchased < Decimal("198645")

    def test_add_to_reserve(self, make_container, pin_price):
        container = make_container()
        before = container.treasury_service.get_active().token_reserve
        transaction = container.ledger_service.add_to_reserve(
            Decimal("1000"),
            Decimal("0.10"),
            "on-chain inflow",
            related_entity_type="solana_tx",
            related_entity_id="5xyz",
        )
        assert transaction.transaction_type == ReserveTransactionType.DEPOSIT
        assert transaction.funding_deposit_id is None
        account = container.treasury_service.get_active()
        assert account.token_reserve == before + Decimal("1000")
        assert transaction.token_reserve_after == account.token_reserve

    def test_funding_history(self, make_container):
        container = make_container()
        history = container.deposit_service.get_history()
        assert [d.deposited_by for d in history] == ["operator"] * 2
        assert history[0].created_at >= history[1].created_at
