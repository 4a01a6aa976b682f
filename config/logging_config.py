"""
Logging Configuration

Configures the ``peer_review`` logger used by the scoring and checklist
validation services. The root logger is left alone so that an embedding
application keeps its own configuration.
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from config.settings import settings


LOGGER_NAMESPACE = "peer_review"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR); defaults to settings
        log_to_file: Also write a dated log file under ``settings.logs_dir``;
            defaults to settings

    Returns:
        The ``peer_review`` logger
    """
    log_level = (log_level or settings.log_level).upper()
    log_to_file = settings.log_to_file if log_to_file is None else log_to_file

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(logging.DEBUG)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(getattr(logging, log_level))
    package_logger.addHandler(console_handler)

    if log_to_file:
        log_file = settings.logs_dir / f"peer_review_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)  # Log everything to file
        package_logger.addHandler(file_handler)

    # SQL statements only when database_echo is on
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a child of the package logger, e.g. ``peer_review.services.scoring``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
