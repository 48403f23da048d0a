"""Rate limiter configuration module.

Kept separate from main.py so routers can import the limiter without a
circular import.
"""

from fastapi import Request
from slowapi import Limiter

from helpers.request_utils import get_client_ip


def client_ip_key(request: Request) -> str:
    """Rate limit key: the client IP as seen through proxy headers."""
    return get_client_ip(request) or "unknown"


limiter = Limiter(key_func=client_ip_key)
