"""
Request utilities for extracting client information.

Handles proxy headers so flood control keys on the real client address.
"""

from typing import Optional

from fastapi import Request


def get_client_ip(request: Request) -> Optional[str]:
    """
    Extract the client's real IP address from the request.

    Handles common proxy headers in order of precedence:
    1. CF-Connecting-IP (Cloudflare)
    2. X-Real-IP (nginx)
    3. X-Forwarded-For (first IP)
    4. Direct client.host

    Returns:
        Client IP address or None if not available
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    if request.client:
        return request.client.host

    return None


def get_header(request: Request, name: str) -> Optional[str]:
    """
    Get a header value, distinguishing an absent header (None) from an empty one.
    """
    if name not in request.headers:
        return None
    return request.headers.get(name, "").strip()
