# src/site_guard/request_utils.py
from typing import Any, Optional
from urllib.parse import urlsplit

UNKNOWN_IP = "unknown"

# Checked in order after X-Forwarded-For
_IP_HEADERS = ("X-Real-IP", "CF-Connecting-IP", "X-Vercel-Forwarded-For", "X-Client-IP")


def get_request_ip(request: Any) -> str:
    """
    Resolves the client IP from proxy headers.
    `request` only needs a case-insensitive `headers.get` (Flask/Werkzeug requests qualify).
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    for header in _IP_HEADERS:
        value = (request.headers.get(header) or "").strip()
        if value:
            return value

    return UNKNOWN_IP


def to_origin(value: Optional[str]) -> Optional[str]:
    """Returns 'scheme://host[:port]' for an absolute URL, or None if it cannot be parsed."""
    if not value:
        return None
    try:
        parts = urlsplit(value.strip())
        # Accessing .port validates it (raises ValueError when out of range)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None

    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    default_port = {"http": 80, "https": 443}.get(scheme)
    if port is not None and port != default_port:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def is_trusted_mutation_origin(request: Any) -> bool:
    """
    True when the Origin header (or, lacking that, the Referer) points at the request's own origin.
    Requests carrying neither header are not trusted.
    """
    request_origin = to_origin(getattr(request, "url", None))
    if not request_origin:
        return False

    origin_header = request.headers.get("Origin")
    if origin_header:
        # compared verbatim
        return origin_header == request_origin

    referer_header = request.headers.get("Referer")
    if not referer_header:
        return False

    return to_origin(referer_header) == request_origin
