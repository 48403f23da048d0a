"""Core infrastructure modules: request context, logging, Sentry and scheduling."""

from core.correlation import (
    client_ip_var,
    correlation_id_var,
    generate_correlation_id,
    get_client_ip,
    get_correlation_id,
    set_client_ip,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry

__all__ = [
    "init_sentry",
    "configure_logging",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "get_client_ip",
    "set_client_ip",
    "correlation_id_var",
    "client_ip_var",
]
