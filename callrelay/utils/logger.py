"""
Logging configuration using loguru.
"""
import sys
from loguru import logger
from callrelay.config import settings
from callrelay.middleware.correlation import correlation_id_filter

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<dim>{extra[correlation_id]}</dim> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[correlation_id]} | {name}:{function}:{line} - {message}"


def setup_logger():
    """Console sink plus a rotating file under DATA_DIR/logs, both tagged with the correlation ID."""
    level = "DEBUG" if settings.debug else settings.log_level.upper()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True, filter=correlation_id_filter)

    log_dir = settings.data_path / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"File logging disabled, cannot create {log_dir}: {e}")
        return

    logger.add(
        log_dir / f"{settings.app_name}.log",
        rotation="10 MB",
        retention=f"{settings.log_retention_days} days",
        level=level,
        format=FILE_FORMAT,
        filter=correlation_id_filter,
    )
    logger.debug(f"Logging to {log_dir} at level {level}")
