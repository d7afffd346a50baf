"""Shared HTTP utilities."""

from __future__ import annotations

from urllib.parse import quote, urlparse

_BASE_URL_ALLOWED_SCHEMES = frozenset({"http", "https"})


def normalize_base_url(value: str) -> str:
    """Normalize and validate the service base URL."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("base_url must not be empty")

    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in _BASE_URL_ALLOWED_SCHEMES:
        raise ValueError("base_url must use http or https")
    if not parsed.netloc:
        raise ValueError("base_url must include host")
    if parsed.query or parsed.fragment:
        raise ValueError("base_url must not include query or fragment")

    normalized_path = parsed.path.rstrip("/")
    return f"{parsed.scheme.lower()}://{parsed.netloc}{normalized_path}"


def path_segment(value: object) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    return quote(str(value), safe="")
