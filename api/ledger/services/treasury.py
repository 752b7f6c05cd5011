"""Treasury account service: the single active treasury row and its lock"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends
from ledger.config import Config, get_config
from ledger.errors.treasury import LedgerBusy
from ledger.models.treasury import TreasuryAccount
from ledger.uow import get_uow
from sqlalchemy import func, select, text, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# advisory lock key for the treasury on PostgreSQL
TREASURY_LOCK_KEY = 0x7EA5


def _is_lock_timeout(exc: OperationalError) -> bool:
    # 55P03 lock_not_available on PostgreSQL, busy timeout on SQLite
    if getattr(exc.orig, "pgcode", None) == "55P03":
        return True
    return "database is locked" in str(exc.orig).lower()


class TreasuryAccountService:
    def __init__(
        self,
        db: Session = Depends(get_uow),
        config: Config = Depends(get_config),
    ):
        self.db = db
        self.config = config

    def _query_active(self):
        return (
            select(TreasuryAccount)
            .where(TreasuryAccount.is_active.is_(True))
            .order_by(TreasuryAccount.created_at, TreasuryAccount.id)
            .limit(1)
        )

    def get_active(self) -> TreasuryAccount:
        """
        Snapshot read of the active treasury, without locking.
        The row is created on first use, under the same lock as every mutation.
        """
        account = self.db.execute(
            self._query_active().execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if account is not None:
            return account
        with self.exclusive() as account:
            return account

    def _acquire_lock(self) -> None:
        dialect = self.db.get_bind().dialect.name
        timeout_ms = int(self.config.lock_timeout_seconds * 1000)
        if dialect == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
            # a row lock cannot cover the row that does not exist yet
            self.db.execute(select(func.pg_advisory_xact_lock(TREASURY_LOCK_KEY)))
        elif dialect == "sqlite":
            # no row locks in SQLite: a write takes the database lock for the
            # rest of the transaction, the busy timeout bounds the wait
            self.db.execute(text(f"PRAGMA busy_timeout = {timeout_ms}"))
            self.db.execute(
                update(TreasuryAccount)
                .where(TreasuryAccount.is_active.is_(True))
                .values(is_active=TreasuryAccount.is_active)
                .execution_options(synchronize_session=False)
            )

    @contextmanager
    def exclusive(self) -> Iterator[TreasuryAccount]:
        """
        Hold the ledger lock on the active treasury for the duration of the block.

        Balances are re-read after the lock is taken. On a clean exit the
        transaction is committed, which releases the lock; any exception rolls
        back every write made inside the block.
        """
        try:
            self._acquire_lock()
            account = self.db.execute(
                self._query_active()
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if account is None:
                # checked again under the lock, concurrent first use creates one row
                account = TreasuryAccount(account_name="Main Treasury", is_active=True)
                self.db.add(account)
                self.db.flush()
                logger.info(
                    "No treasury account found, created main treasury id=%s",
                    account.id,
                )
            yield account
            self.db.commit()
        except OperationalError as exc:
            self.db.rollback()
            if _is_lock_timeout(exc):
                logger.warning("Ledger lock not acquired in time: %s", exc.orig)
                raise LedgerBusy(where="treasury") from exc
            raise
        except BaseException:
            self.db.rollback()
            raise
