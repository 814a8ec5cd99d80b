"""
Logging configuration using loguru.
"""
import sys
from loguru import logger
from presetarr.config import settings
from presetarr.middleware.correlation import correlation_id_filter

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<dim>{extra[correlation_id]} u={extra[user]}</dim> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[correlation_id]} u={extra[user]} | "
    "{name}:{function}:{line} - {message}"
)


def setup_logger():
    """Send logs to stderr and to a rotating file under the data directory."""
    logger.remove()

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if settings.debug else "INFO",
        colorize=True,
        filter=correlation_id_filter,
    )

    # Apply and rollback reports are kept alongside the database
    log_dir = settings.data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "presetarr.log",
        rotation="10 MB",
        retention="7 days",
        level="INFO",
        format=FILE_FORMAT,
        filter=correlation_id_filter,
    )

    logger.info(f"Logging to {log_dir / 'presetarr.log'}")
