"""
Request-scoped context: correlation ID and client IP.

The correlation ID ties log lines and error reports of one request together.
The client IP is the default flood-control identifier for the request.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variables for request-scoped values
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
client_ip_var: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)


def generate_correlation_id() -> str:
    """
    Generate a short, unique correlation ID.

    Returns:
        8-character hexadecimal string.
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the current request's correlation ID, or empty string if not set."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for current request context."""
    correlation_id_var.set(correlation_id)


def get_client_ip() -> Optional[str]:
    """Return the client IP recorded for the current request, if any."""
    return client_ip_var.get()


def set_client_ip(ip_address: Optional[str]) -> None:
    """Record the client IP for the current request context."""
    client_ip_var.set(ip_address)
