"""
Loguru logging configuration.

- Console logging for development
- Structured JSON logging everywhere else
- Correlation ID and client IP in every record
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from core.correlation import get_client_ip, get_correlation_id

if TYPE_CHECKING:
    from loguru import Record


def request_context_filter(record: "Record") -> bool:
    """
    Add correlation ID and client IP to log record.

    Returns:
        Always True (filter never drops messages).
    """
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    record["extra"]["client_ip"] = get_client_ip() or "-"
    return True


def configure_logging(
    environment: str = "development", log_file: Optional[str] = None
) -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for console, anything else for JSON.
        log_file: Optional path of a rotating log file.
    """
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[correlation_id]}</cyan> | "
        "<magenta>{extra[client_ip]}</magenta> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    if environment == "development":
        logger.add(
            sys.stderr,
            format=log_format,
            level="DEBUG",
            filter=request_context_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=request_context_filter,
            serialize=True,
        )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=log_format if environment == "development" else "{message}",
            level="INFO",
            filter=request_context_filter,
            rotation="10 MB",
            retention="7 days",
            serialize=(environment != "development"),
        )
