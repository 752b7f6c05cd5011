"""Treasury account model"""

from datetime import datetime
from decimal import Decimal

from ledger.models.base import BaseModel
from ledger.models.types import TOKEN_PLACES, USD_PLACES, FixedDecimal
from sqlalchemy import Boolean, DateTime, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column


class TreasuryAccount(BaseModel):
    __tablename__ = "treasury_accounts"
    # at most one active treasury per deployment
    __table_args__ = (
        Index(
            "uq_treasury_accounts_active",
            "is_active",
            unique=True,
            sqlite_where=text("is_active"),
            postgresql_where=text("is_active"),
        ),
    )

    account_name: Mapped[str] = mapped_column(String, default="Main Treasury")
    # cumulative USD ever deposited, never decreases
    total_funding: Mapped[Decimal] = mapped_column(
        FixedDecimal(USD_PLACES), nullable=False, default=Decimal("0.00")
    )
    # cumulative USD value ever paid out, never decreases
    total_distributed: Mapped[Decimal] = mapped_column(
        FixedDecimal(USD_PLACES), nullable=False, default=Decimal("0.00")
    )
    token_reserve: Mapped[Decimal] = mapped_column(
        FixedDecimal(TOKEN_PLACES), nullable=False, default=Decimal("0")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    modified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def available_funding(self) -> Decimal:
        return self.total_funding - self.total_distributed
