"""Record an operator funding deposit from the command line.

Usage examples:
    python -m ledger.scripts.deposit_funds --by admin --amount 250.00
    python -m ledger.scripts.deposit_funds --by admin --amount 50 \
        --method bank_transfer --external-id wire-2024-001 --notes "March top-up"
"""

from __future__ import annotations

import argparse
import json
import logging
from decimal import Decimal, InvalidOperation

from ledger.config import get_config
from ledger.db import DatabaseConnection
from ledger.dependencies.services import ServiceContainer
from ledger.log import configure_logging
from ledger.uow import UnitOfWork

logger = logging.getLogger(__name__)


def _amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deposit USD funding into the treasury")
    parser.add_argument("--by", required=True, help="Who deposited the funds")
    parser.add_argument(
        "--amount", type=_amount, required=True, help="USD amount, e.g. 250.00"
    )
    parser.add_argument("--method", default="manual", help="Deposit method")
    parser.add_argument("--notes", default=None)
    parser.add_argument(
        "--external-id",
        default=None,
        help="Payment reference, a second deposit with the same id is refused",
    )
    parser.add_argument(
        "--details", type=json.loads, default=None, help="JSON object with metadata"
    )
    return parser.parse_args(argv)


def deposit_funds(args: argparse.Namespace) -> int:
    """Returns the id of the recorded deposit."""
    # Create config explicitly for CLI usage (bypass FastAPI Depends)
    config = get_config()
    db = DatabaseConnection(config=config)
    session = db.get_session()
    with UnitOfWork(session) as uow:
        container = ServiceContainer(uow, config)
        deposit = container.ledger_service.deposit(
            args.by,
            args.amount,
            deposit_method=args.method,
            notes=args.notes,
            external_transaction_id=args.external_id,
            details=args.details,
        )
        deposit_id = deposit.id
        stats = container.ledger_service.get_stats()
    logger.info(
        "Treasury now holds $%s available and %s tokens",
        stats.available_funding,
        stats.token_reserve,
    )
    return deposit_id


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    deposit_funds(parse_args(argv))


if __name__ == "__main__":
    main()
