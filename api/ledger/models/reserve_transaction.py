"""Reserve transaction model, the append-only treasury log"""

import enum
from decimal import Decimal

from ledger.models.base import BaseModel
from ledger.models.treasury import TreasuryAccount
from ledger.models.types import PRICE_PLACES, TOKEN_PLACES, USD_PLACES, FixedDecimal
from sqlalchemy import Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


class ReserveTransactionType(enum.Enum):
    DEPOSIT = "deposit"
    DISTRIBUTION = "distribution"


class ReserveTransaction(BaseModel):
    __tablename__ = "reserve_transactions"
    __table_args__ = (
        Index(
            "idx_reserve_transactions_account_type",
            "treasury_account_id",
            "transaction_type",
        ),
    )

    treasury_account_id: Mapped[int] = mapped_column(
        ForeignKey("treasury_accounts.id"), nullable=False
    )
    treasury_account: Mapped[TreasuryAccount] = relationship(
        foreign_keys=[treasury_account_id]
    )

    transaction_type: Mapped[ReserveTransactionType] = mapped_column(
        Enum(ReserveTransactionType), nullable=False
    )

    # magnitudes, the direction is implied by transaction_type
    token_amount: Mapped[Decimal] = mapped_column(
        FixedDecimal(TOKEN_PLACES), nullable=False
    )
    cash_value: Mapped[Decimal] = mapped_column(
        FixedDecimal(USD_PLACES), nullable=False
    )
    token_price: Mapped[Decimal | None] = mapped_column(
        FixedDecimal(PRICE_PLACES), nullable=True
    )

    # point-in-time snapshot right after this transaction
    balance_after: Mapped[Decimal] = mapped_column(
        FixedDecimal(USD_PLACES), nullable=False
    )
    token_reserve_after: Mapped[Decimal] = mapped_column(
        FixedDecimal(TOKEN_PLACES), nullable=False
    )

    # opaque reference to the caller's own object, e.g. a check-in id
    related_entity_type: Mapped[str | None] = mapped_column(String, nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(String, nullable=True)

    funding_deposit_id: Mapped[int | None] = mapped_column(
        ForeignKey("funding_deposits.id"), nullable=True, unique=True
    )

    description: Mapped[str] = mapped_column(String, nullable=False)
