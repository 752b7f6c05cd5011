"""Price sample model, persisted token price observations"""

from decimal import Decimal

from ledger.models.base import BaseModel
from ledger.models.types import PRICE_PLACES, FixedDecimal
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column


class PriceSample(BaseModel):
    __tablename__ = "price_samples"

    price: Mapped[Decimal] = mapped_column(FixedDecimal(PRICE_PLACES), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
