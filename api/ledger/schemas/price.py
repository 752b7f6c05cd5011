"""DTO for token price and market data"""

from datetime import datetime

from ledger.schemas.base import (
    BaseSchema,
    CurrencyDecimal,
    PercentDecimal,
    PriceDecimal,
    TokenDecimal,
)


class MarketDataSchema(BaseSchema):
    address: str
    symbol: str
    name: str
    price_usd: PriceDecimal
    price_change_24h: PercentDecimal
    volume_24h: CurrencyDecimal
    market_cap: CurrencyDecimal
    liquidity: CurrencyDecimal
    fdv: CurrencyDecimal


class VolatilitySchema(BaseSchema):
    change_percent: PercentDecimal
    sample_count: int
    recommendation: str


class PriceSchema(BaseSchema):
    price: PriceDecimal
    source: str
    smoothed_price: PriceDecimal | None = None
    market_data: MarketDataSchema | None = None
    volatility: VolatilitySchema
    last_updated: datetime


class ConversionSchema(BaseSchema):
    usd_amount: CurrencyDecimal
    token_amount: TokenDecimal
    price: PriceDecimal
    source: str
