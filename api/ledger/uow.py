"""Request-scoped unit of work over a SQLAlchemy session"""

import logging
from typing import Generator

from fastapi import Depends
from ledger.db import get_db as get_original_db  # fix for test mocks
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Session wrapper shared by every service of one request.

    Ledger mutations commit on their own when they leave the treasury lock,
    so on a clean exit there is usually nothing left to flush. Whatever is
    still pending then is committed; an exception rolls it back.
    """

    def __init__(self, db: Session):
        self.db = db

    def __getattr__(self, attr):
        # services use the UoW as if it were the session
        return getattr(self.db, attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                self.db.rollback()
            else:
                self.db.commit()
        finally:
            self.db.close()


def get_uow(
    db: Session = Depends(get_original_db),
) -> Generator[UnitOfWork, None, None]:
    """One UnitOfWork per request, handed to all services of that request."""
    with UnitOfWork(db) as uow:
        yield uow
