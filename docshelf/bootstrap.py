"""Process startup for anything embedding docshelf.

Configures logging, rejects development-only settings in production,
verifies the database is reachable and creates missing tables. Callers run
``bootstrap()`` once before handing sessions to AccessFacade.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .core.config import settings, Settings
from .core.logging_config import mask_url, setup_logging
from .database import engine as default_engine, init_db
from .exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)


def check_database(bind: Engine) -> None:
    """Run ``SELECT 1`` against *bind*, raising DatabaseUnavailableError on failure."""
    masked = mask_url(str(bind.url.render_as_string(hide_password=False)))
    logger.info("Connecting to database", extra={"database_url": masked})
    try:
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.critical(
            "Database connection failed",
            extra={"database_url": masked, "dialect": bind.dialect.name},
        )
        raise DatabaseUnavailableError(masked) from e
    logger.info("Database connection verified")


def bootstrap(config: Optional[Settings] = None, bind: Optional[Engine] = None) -> Engine:
    """Prepare logging and the database. Returns the engine in use.

    Raises:
        ConfigurationError: production settings are unsuitable
        DatabaseUnavailableError: the database cannot be reached
    """
    config = config or settings
    bind = bind or default_engine

    setup_logging(log_level=config.log_level, log_format=config.log_format)
    config.validate_production_config()
    check_database(bind)
    init_db(bind)
    logger.info("docshelf ready", extra={"environment": config.environment.value})
    return bind
