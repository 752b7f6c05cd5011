"""Funding deposit model"""

import enum
from decimal import Decimal

from ledger.models.base import BaseModel
from ledger.models.reserve_transaction import ReserveTransaction
from ledger.models.treasury import TreasuryAccount
from ledger.models.types import PRICE_PLACES, TOKEN_PLACES, USD_PLACES, FixedDecimal
from sqlalchemy import JSON, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


class FundingDepositStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class FundingDeposit(BaseModel):
    __tablename__ = "funding_deposits"

    treasury_account_id: Mapped[int] = mapped_column(
        ForeignKey("treasury_accounts.id"), nullable=False
    )
    treasury_account: Mapped[TreasuryAccount] = relationship(
        foreign_keys=[treasury_account_id]
    )

    deposited_by: Mapped[str] = mapped_column(String, nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(
        FixedDecimal(USD_PLACES), nullable=False
    )
    tokens_purchased: Mapped[Decimal] = mapped_column(
        FixedDecimal(TOKEN_PLACES), nullable=False
    )
    token_price: Mapped[Decimal] = mapped_column(
        FixedDecimal(PRICE_PLACES), nullable=False
    )
    price_source: Mapped[str] = mapped_column(String, nullable=False)
    deposit_method: Mapped[str] = mapped_column(String, default="manual")
    status: Mapped[FundingDepositStatus] = mapped_column(
        Enum(FundingDepositStatus),
        nullable=False,
        default=FundingDepositStatus.COMPLETED,
    )

    # payment intent id, transfer hash, etc. used to reconcile with outside ledgers
    external_transaction_id: Mapped[str | None] = mapped_column(
        String, nullable=True, unique=True
    )
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    reserve_transaction: Mapped[ReserveTransaction | None] = relationship(
        primaryjoin="FundingDeposit.id == ReserveTransaction.funding_deposit_id",
        foreign_keys="ReserveTransaction.funding_deposit_id",
        uselist=False,
        viewonly=True,
    )
