"""Logging setup for the API server and the operator scripts"""

import logging
import logging.config
from os import environ

from yaml import safe_load

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
DEFAULT_FORMAT = "%(asctime)s   %(name)-32s %(levelname)-8s %(message)s"


def configure_logging() -> None:
    """
    Configure logging from environment variables.

    LOG_CONFIG names a YAML dictConfig file and takes precedence. Otherwise
    LOG_LEVEL, LOG_FORMAT and LOG_FILE apply, and LOG_SQL=1 echoes the SQL
    the ledger runs, which helps when looking into lock waits.
    """
    log_config_path = environ.get("LOG_CONFIG", None)
    if log_config_path is not None:
        with open(log_config_path, "r") as f:
            logging.config.dictConfig(safe_load(f.read()))
        return

    log_level = environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {log_level}")
    log_file = environ.get("LOG_FILE", None)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format=environ.get("LOG_FORMAT", DEFAULT_FORMAT),
        handlers=handlers,
    )

    # price requests log every connection at debug level
    urllib3_level = max(logging.INFO, logging.getLevelName(log_level))
    logging.getLogger("urllib3").setLevel(urllib3_level)
    if environ.get("LOG_SQL", "").lower() in ("1", "true", "yes"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
