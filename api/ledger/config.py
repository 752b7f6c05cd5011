"""Application configuration"""

from dataclasses import dataclass, field
from decimal import Decimal
from os import getenv
from pathlib import Path


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _optional_decimal(value: str | None) -> Decimal | None:
    return Decimal(value) if value else None


@dataclass
class Config:
    app_name: str = "ledger"
    app_version: str = "0.1.0"

    # Optional database URL for Postgres or other databases
    database_url_env: str | None = field(default=getenv("LEDGER_DATABASE_URL", None))

    # safety thresholds, USD
    minimum_balance: Decimal = field(
        default=Decimal(getenv("LEDGER_MINIMUM_BALANCE", "1.00"))
    )
    warning_threshold: Decimal = field(
        default=Decimal(getenv("LEDGER_WARNING_THRESHOLD", "100.00"))
    )
    critical_threshold: Decimal = field(
        default=Decimal(getenv("LEDGER_CRITICAL_THRESHOLD", "25.00"))
    )

    # token and price oracle
    token_symbol: str = field(default=getenv("LEDGER_TOKEN_SYMBOL", "JCMOVES"))
    token_address: str = field(
        default=getenv(
            "LEDGER_TOKEN_ADDRESS", "BHZW4jds7NSe5Fqvw9Z4pvt423EJSx63k8MT11F2moon"
        )
    )
    dexscreener_url: str = field(
        default=getenv(
            "LEDGER_DEXSCREENER_URL", "https://api.dexscreener.com/latest/dex/tokens"
        )
    )
    moonshot_url: str = field(
        default=getenv("LEDGER_MOONSHOT_URL", "https://api.moonshot.cc/token/v1/solana")
    )
    # empty string disables the fallback price entirely
    fallback_token_price: Decimal | None = field(
        default=_optional_decimal(
            getenv("LEDGER_FALLBACK_TOKEN_PRICE", "0.000005034116")
        )
    )
    # distributions priced at the fallback price are halted like an oracle outage
    halt_on_fallback_price: bool = field(
        default=_flag(getenv("LEDGER_HALT_ON_FALLBACK_PRICE", "true"))
    )
    oracle_timeout_seconds: float = field(
        default=float(getenv("LEDGER_ORACLE_TIMEOUT_SECONDS", "10"))
    )
    price_cache_ttl_seconds: int = field(
        default=int(getenv("LEDGER_PRICE_CACHE_TTL_SECONDS", "30"))
    )
    price_history_hours: int = field(
        default=int(getenv("LEDGER_PRICE_HISTORY_HOURS", "24"))
    )

    # volatility guard, percent
    volatility_window_minutes: int = field(
        default=int(getenv("LEDGER_VOLATILITY_WINDOW_MINUTES", "60"))
    )
    medium_volatility_percent: Decimal = Decimal("5")
    high_volatility_percent: Decimal = Decimal("10")
    extreme_volatility_percent: Decimal = Decimal("20")
    medium_volatility_cap: Decimal = Decimal("0.75")
    high_volatility_cap: Decimal = Decimal("0.50")

    # locking
    lock_timeout_seconds: float = field(
        default=float(getenv("LEDGER_LOCK_TIMEOUT_SECONDS", "5"))
    )

    # reporting
    runway_window_days: int = field(
        default=int(getenv("LEDGER_RUNWAY_WINDOW_DAYS", "30"))
    )

    # background price sampling
    price_sampler_enabled: bool = field(
        default=_flag(getenv("LEDGER_PRICE_SAMPLER_ENABLED", "false"))
    )
    price_sampler_interval_seconds: int = field(
        default=int(getenv("LEDGER_PRICE_SAMPLER_INTERVAL_SECONDS", "900"))
    )

    @property
    def database_path(self) -> Path:
        return Path("./data/") / Path(f"{self.app_name}.db")

    @property
    def database_url(self) -> str:
        # Use provided DATABASE_URL if available, else fall back to SQLite file
        if self.database_url_env:
            return self.database_url_env
        return f"sqlite:///{self.database_path}"


def get_config():
    return Config()
