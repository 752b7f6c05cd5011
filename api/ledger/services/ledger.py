"""Ledger service: deposits and distributions against the treasury"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable

from fastapi import Depends
from ledger.config import Config, get_config
from ledger.errors.base import ApplicationError
from ledger.errors.common import InvalidAmount
from ledger.errors.deposit import DuplicateExternalDeposit
from ledger.errors.price import PriceUnavailable
from ledger.errors.treasury import (
    InsufficientFunding,
    InsufficientReserve,
    MinimumBalanceBreach,
)
from ledger.errors.volatility import (
    OracleUnavailable,
    VolatilityCapExceeded,
    VolatilityHalt,
)
from ledger.models.base import utcnow
from ledger.models.funding_deposit import FundingDeposit, FundingDepositStatus
from ledger.models.reserve_transaction import (
    ReserveTransaction,
    ReserveTransactionType,
)
from ledger.models.treasury import TreasuryAccount
from ledger.models.types import quantize, quantize_tokens, quantize_usd
from ledger.schemas.treasury import (
    CanDistributeSchema,
    DistributionResultSchema,
    FundingStatusSchema,
    HealthCheckSchema,
    TreasuryStatsSchema,
)
from ledger.services.deposit import FundingDepositService
from ledger.services.price import TokenPriceService
from ledger.services.treasury import TreasuryAccountService
from ledger.services.volatility import RiskAssessment, RiskTier, VolatilityGuard
from ledger.uow import get_uow
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _fixed(quantizer: Callable[[Decimal], Decimal], value, what: str) -> Decimal:
    """Round to the stored precision, amounts that do not fit are invalid."""
    try:
        return quantizer(Decimal(str(value)))
    except InvalidOperation as exc:
        raise InvalidAmount(f"{what} {value}") from exc


class LedgerService:
    """
    The only writer of treasury balances.

    Every balance change happens inside TreasuryAccountService.exclusive(): the
    treasury row is locked, balances are re-read, checked, updated, and the
    matching log entry is appended in the same database transaction. The
    price oracle is consulted before the lock is taken so that no network call
    happens while the lock is held. Nothing is retried here, retry policy
    belongs to the caller and its own idempotency key.
    """

    def __init__(
        self,
        db: Session = Depends(get_uow),
        treasury_service: TreasuryAccountService = Depends(),
        price_service: TokenPriceService = Depends(),
        volatility_guard: VolatilityGuard = Depends(),
        deposit_service: FundingDepositService = Depends(),
        config: Config = Depends(get_config),
    ):
        self.db = db
        self._treasury_service = treasury_service
        self._price_service = price_service
        self._volatility_guard = volatility_guard
        self._deposit_service = deposit_service
        self.config = config

    # --- read side ---------------------------------------------------------
    def get_stats(self) -> TreasuryStatsSchema:
        """Advisory snapshot, may lag behind a concurrent writer."""
        account = self._treasury_service.get_active()
        available = account.available_funding
        price = source = reserve_value = None
        try:
            quote = self._price_service.get_current_price()
            price, source = quote.price, quote.source
            reserve_value = quantize_usd(account.token_reserve * price)
        except PriceUnavailable:
            logger.warning("Treasury stats computed without a token price")

        if account.total_funding > 0:
            liability_ratio = account.total_distributed / account.total_funding * 100
        else:
            liability_ratio = Decimal(0)

        return TreasuryStatsSchema(
            total_funding=account.total_funding,
            total_distributed=account.total_distributed,
            available_funding=available,
            token_reserve=account.token_reserve,
            token_price=price,
            price_source=source,
            token_reserve_value=reserve_value,
            liability_ratio=quantize(liability_ratio, 2),
            is_healthy=available >= self.config.minimum_balance,
        )

    def get_funding_status(self) -> FundingStatusSchema:
        account = self._treasury_service.get_active()
        current_balance = account.available_funding
        return FundingStatusSchema(
            can_distribute_rewards=current_balance >= self.config.minimum_balance,
            current_balance=current_balance,
            minimum_balance=self.config.minimum_balance,
            warning_threshold=self.config.warning_threshold,
        )

    def get_health_check(self) -> HealthCheckSchema:
        available = self._treasury_service.get_active().available_funding

        if available < self.config.minimum_balance:
            return HealthCheckSchema(
                status="critical",
                message=f"Treasury balance critically low: ${available:.2f}",
                recommendations=[
                    "Deposit funds immediately to continue reward distributions",
                    "Consider temporarily disabling signup bonuses to preserve funds",
                    "Review and optimize reward amounts if necessary",
                ],
            )
        if available < self.config.warning_threshold:
            return HealthCheckSchema(
                status="warning",
                message=f"Treasury balance is low: ${available:.2f}",
                recommendations=[
                    "Plan to deposit additional funds soon",
                    "Monitor daily distribution rates closely",
                    "Consider adjusting reward amounts if needed",
                ],
            )
        return HealthCheckSchema(
            status="healthy",
            message=f"Treasury is well-funded: ${available:.2f} available",
            recommendations=[
                "Continue monitoring treasury balance regularly",
                "Maintain funding levels based on business growth",
            ],
        )

    def get_risk_assessment(self) -> RiskAssessment:
        account = self._treasury_service.get_active()
        return self._volatility_guard.assess(account.token_reserve)

    # --- validation --------------------------------------------------------
    def _token_amount(self, value: Decimal) -> Decimal:
        amount = _fixed(quantize_tokens, value, "token amount")
        if amount <= 0:
            raise InvalidAmount(f"token amount {value}")
        return amount

    def _usd_amount(self, value: Decimal) -> Decimal:
        amount = _fixed(quantize_usd, value, "usd amount")
        if amount <= 0:
            raise InvalidAmount(f"usd amount {value}")
        return amount

    @staticmethod
    def _check_admission(token_amount: Decimal, assessment: RiskAssessment) -> None:
        if not assessment.oracle_available:
            raise OracleUnavailable(assessment.recommendation, where="distribute")
        if assessment.halted:
            raise VolatilityHalt(assessment.change_percent, where="distribute")
        # at no risk the whole reserve is available, the reserve check decides
        if (
            assessment.tier is not RiskTier.NONE
            and token_amount > assessment.max_safe_tokens
        ):
            raise VolatilityCapExceeded(
                requested=token_amount,
                allowed=assessment.max_safe_tokens,
                tier=assessment.tier.value,
                where="distribute",
            )

    def _check_solvency(
        self, account: TreasuryAccount, token_amount: Decimal, cash_value: Decimal
    ) -> None:
        available = account.available_funding
        if account.token_reserve < token_amount:
            raise InsufficientReserve(
                f"required {token_amount} tokens, available {account.token_reserve} tokens"
            )
        if available < cash_value:
            raise InsufficientFunding(
                f"required ${cash_value:.2f}, available ${available:.2f}"
            )
        remaining = available - cash_value
        if remaining < self.config.minimum_balance:
            raise MinimumBalanceBreach(
                f"minimum ${self.config.minimum_balance:.2f}, "
                f"remaining would be ${remaining:.2f}"
            )

    @staticmethod
    def _check_invariants(account: TreasuryAccount) -> None:
        """Last line before commit, a violation rolls the transaction back."""
        if account.available_funding < 0:
            raise InsufficientFunding(f"available ${account.available_funding:.2f}")
        if account.token_reserve < 0:
            raise InsufficientReserve(f"reserve {account.token_reserve} tokens")

    def can_distribute(self, token_amount: Decimal) -> CanDistributeSchema:
        """
        Cheap pre-check against a snapshot, so callers can fail fast.
        distribute() checks everything again under the lock.
        """
        try:
            amount = self._token_amount(token_amount)
            account = self._treasury_service.get_active()
            assessment = self._volatility_guard.assess(account.token_reserve)
            self._check_admission(amount, assessment)
            cash_value = _fixed(quantize_usd, amount * assessment.price, "cash value")
            self._check_solvency(account, amount, cash_value)
        except ApplicationError as exc:
            return CanDistributeSchema(
                ok=False, reason=exc.error, error_code=exc.error_code
            )
        return CanDistributeSchema(
            ok=True,
            current_price=assessment.price,
            risk_tier=assessment.tier.value,
            max_safe_tokens=assessment.max_safe_tokens,
        )

    # --- write side --------------------------------------------------------
    def _append(self, account: TreasuryAccount, **values) -> ReserveTransaction:
        """Append the log entry for a balance change, with post-balances."""
        transaction = ReserveTransaction(
            treasury_account_id=account.id,
            balance_after=account.available_funding,
            token_reserve_after=account.token_reserve,
            **values,
        )
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def distribute(
        self,
        token_amount: Decimal,
        description: str,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> DistributionResultSchema:
        try:
            amount = self._token_amount(token_amount)
            snapshot = self._treasury_service.get_active()
            assessment = self._volatility_guard.assess(snapshot.token_reserve)
            # halts and caps are decided before any lock is taken
            self._check_admission(amount, assessment)
            price = assessment.price
            cash_value = _fixed(quantize_usd, amount * price, "cash value")

            with self._treasury_service.exclusive() as account:
                self._check_solvency(account, amount, cash_value)
                account.total_distributed += cash_value
                account.token_reserve -= amount
                account.modified_at = utcnow()
                self._check_invariants(account)
                transaction = self._append(
                    account,
                    transaction_type=ReserveTransactionType.DISTRIBUTION,
                    token_amount=amount,
                    cash_value=cash_value,
                    token_price=price,
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                    description=description,
                )
                result = DistributionResultSchema(
                    tokens_distributed=amount,
                    cash_value=cash_value,
                    remaining_balance=account.available_funding,
                    token_reserve=account.token_reserve,
                    token_price=price,
                    transaction_id=transaction.id,
                )
        except ApplicationError as exc:
            logger.warning(
                "Distribution of %s tokens refused (%s): %s",
                token_amount,
                exc.error_code,
                exc.error,
            )
            raise

        logger.info(
            "Distributed %s tokens ($%s) for %s, remaining balance $%s",
            result.tokens_distributed,
            result.cash_value,
            description,
            result.remaining_balance,
        )
        return result

    def deposit(
        self,
        deposited_by: str,
        usd_amount: Decimal,
        deposit_method: str = "manual",
        notes: str | None = None,
        external_transaction_id: str | None = None,
        details: dict | None = None,
    ) -> FundingDeposit:
        """
        Record operator funding. There is no volatility gate, deposits only add.
        The deposit row and its log entry are written together or not at all.
        """
        amount = self._usd_amount(usd_amount)
        quote = self._price_service.get_current_price()
        tokens_purchased = _fixed(quantize_tokens, amount / quote.price, "tokens for")

        with self._treasury_service.exclusive() as account:
            if external_transaction_id is not None and (
                self._deposit_service.find_by_external_id(external_transaction_id)
                is not None
            ):
                raise DuplicateExternalDeposit(external_transaction_id)

            deposit = FundingDeposit(
                treasury_account_id=account.id,
                deposited_by=deposited_by,
                deposit_amount=amount,
                tokens_purchased=tokens_purchased,
                token_price=quote.price,
                price_source=quote.source,
                deposit_method=deposit_method,
                status=FundingDepositStatus.COMPLETED,
                external_transaction_id=external_transaction_id,
                details=details,
                notes=notes,
            )
            self.db.add(deposit)
            self.db.flush()

            account.total_funding += amount
            account.token_reserve += tokens_purchased
            account.modified_at = utcnow()
            self._check_invariants(account)
            self._append(
                account,
                transaction_type=ReserveTransactionType.DEPOSIT,
                token_amount=tokens_purchased,
                cash_value=amount,
                token_price=quote.price,
                related_entity_type="funding_deposit",
                related_entity_id=str(deposit.id),
                funding_deposit_id=deposit.id,
                description=f"Funding deposit: ${amount:.2f} ({tokens_purchased:.0f} tokens)",
            )
            deposit_id = deposit.id

        logger.info(
            "Deposit id=%s of $%s by %s credited %s tokens at %s (%s)",
            deposit_id,
            amount,
            deposited_by,
            tokens_purchased,
            quote.price,
            quote.source,
        )
        return deposit

    def add_to_reserve(
        self,
        token_amount: Decimal,
        cash_value: Decimal,
        description: str,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> ReserveTransaction:
        """Credit an inflow detected outside the ledger, e.g. an on-chain transfer."""
        amount = self._token_amount(token_amount)
        cash = _fixed(quantize_usd, cash_value, "cash value")
        if cash < 0:
            raise InvalidAmount(f"cash value {cash_value}")

        with self._treasury_service.exclusive() as account:
            account.total_funding += cash
            account.token_reserve += amount
            account.modified_at = utcnow()
            self._check_invariants(account)
            transaction = self._append(
                account,
                transaction_type=ReserveTransactionType.DEPOSIT,
                token_amount=amount,
                cash_value=cash,
                token_price=(cash / amount) if cash > 0 else None,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
                description=description,
            )
            transaction_id = transaction.id

        logger.info(
            "Reserve credited with %s tokens ($%s): %s transaction id=%s",
            amount,
            cash,
            description,
            transaction_id,
        )
        return transaction
