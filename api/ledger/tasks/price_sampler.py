"""Periodic token price sampling.

Persists one price observation per interval. The samples are the reference
points for portfolio performance (day, week and all-time deltas).
"""

from __future__ import annotations

import asyncio
import logging

from ledger.config import Config, get_config
from ledger.db import DatabaseConnection
from ledger.dependencies.services import ServiceContainer
from ledger.models.price_sample import PriceSample
from ledger.uow import UnitOfWork

logger = logging.getLogger(__name__)


def sample_price(config: Config | None = None) -> int | None:
    """Store the current quote. Returns the sample id, None when skipped."""
    config = config or get_config()
    db_conn = DatabaseConnection(config)
    session = db_conn.get_session()
    with UnitOfWork(session) as uow:
        container = ServiceContainer(uow, config)
        quote = container.price_service.get_current_price()
        if quote.source == "fallback":
            # not a market observation
            logger.warning("Price sample skipped, only the fallback price is available")
            return None
        sample = PriceSample(price=quote.price, source=quote.source)
        uow.add(sample)
        uow.flush()
        sample_id = sample.id
    logger.info("Stored price sample id=%s price=%s", sample_id, quote.price)
    return sample_id


async def schedule_price_sampler(config: Config | None = None) -> None:
    config = config or get_config()
    while True:
        try:
            await asyncio.to_thread(sample_price, config)
        except Exception:
            logger.exception("Price sampling failed", exc_info=True)
        await asyncio.sleep(config.price_sampler_interval_seconds)
