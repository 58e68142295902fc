# hookbin/utils/urls.py
from __future__ import annotations

from typing import Dict, List, Optional

DEFAULT_HOST = "localhost:3000"


def _header(headers: Dict[str, List[str]], name: str) -> Optional[str]:
    for key, values in headers.items():
        if key.lower() == name and values:
            return values[0]
    return None


def _first_forwarded(headers: Dict[str, List[str]], name: str) -> Optional[str]:
    value = _header(headers, name)
    if value is None:
        return None
    return value.split(",", 1)[0].strip()


def derive_webhook_url(base_url: Optional[str], headers: Dict[str, List[str]], token: str) -> str:
    """
    Build the public URL a token's owner should send webhooks to.

    A configured base URL always wins. Otherwise the proxy headers
    X-Forwarded-Proto and X-Forwarded-Host are used when both are usable,
    and finally the Host header, with the scheme guessed from the host.
    """
    if base_url:
        return f"{base_url.rstrip('/')}/{token}"

    proto = _first_forwarded(headers, "x-forwarded-proto")
    host = _first_forwarded(headers, "x-forwarded-host")
    if proto in ("http", "https") and host:
        scheme = proto
    else:
        host = _header(headers, "host") or DEFAULT_HOST
        if host.startswith("localhost") or host.startswith("127.0.0.1"):
            scheme = "http"
        else:
            scheme = "https"

    return f"{scheme}://{host}".rstrip("/") + f"/{token}"
