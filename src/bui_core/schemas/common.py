"""Shared field types for bui-core schemas."""

from __future__ import annotations

from typing import Annotated
from urllib.parse import urlparse

from pydantic import AfterValidator


def require_https_url(value: str) -> str:
    """Accept only absolute ``https://`` URLs.

    Raises:
        ValueError: If the value is not an absolute HTTPS URL.
    """
    parsed = urlparse(value)
    if parsed.scheme != "https":
        raise ValueError("must use HTTPS")
    if not parsed.netloc or any(ch.isspace() for ch in value):
        raise ValueError("must be a valid absolute URL")
    return value


HttpsUrl = Annotated[str, AfterValidator(require_https_url)]
"""String field holding an absolute HTTPS URL, kept verbatim."""
