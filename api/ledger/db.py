"""Database connection and initialization"""

import logging
import os
from typing import Any, Generator

import ledger.models.funding_deposit  # noqa: F401  register tables
import ledger.models.price_sample  # noqa: F401
import ledger.models.reserve_transaction  # noqa: F401
import ledger.models.treasury  # noqa: F401
from fastapi import Depends
from ledger.config import Config, get_config
from ledger.models.base import BaseModel
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


class DatabaseConnection:
    engine: Engine
    session_local: sessionmaker[Session]
    # Engines are shared per database URL, tables are created once per URL.
    _engines: dict[str, Engine] = {}

    def __init__(self, config: Config = Depends(get_config)) -> None:
        url = config.database_url
        created = url not in self.__class__._engines
        if created:
            self.__class__._engines[url] = self._create_engine(config)
        self.engine = self.__class__._engines[url]
        if created:
            self.create_tables()
        self.session_local = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    @staticmethod
    def _create_engine(config: Config) -> Engine:
        if config.database_url.startswith("sqlite"):
            # Ensure the database folder exists.
            os.makedirs(config.database_path.parent, exist_ok=True)
            # busy timeout bounds how long a writer waits for the ledger lock
            return create_engine(
                config.database_url,
                connect_args={
                    "check_same_thread": False,
                    "timeout": config.lock_timeout_seconds,
                },
            )
        return create_engine(config.database_url, pool_pre_ping=True)

    @classmethod
    def dispose(cls, config: Config) -> None:
        """Forget the engine of a database, used when a test database is removed."""
        engine = cls._engines.pop(config.database_url, None)
        if engine is not None:
            engine.dispose()

    def create_tables(self) -> None:
        """Create all database tables defined in models."""
        logger.info("Creating database tables...")
        BaseModel.metadata.create_all(bind=self.engine)
        logger.info("Database tables created.")

    def get_session(self) -> Session:
        """Return a new SQLAlchemy session."""
        return self.session_local()


def get_db(db_conn: DatabaseConnection = Depends()) -> Generator[Session, Any, None]:
    """
    Dependency for providing a SQLAlchemy session to services and tests.

    Yields:
        SQLAlchemy Session.
    """
    session = db_conn.get_session()
    try:
        yield session
    finally:
        session.close()
