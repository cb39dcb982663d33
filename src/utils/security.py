"""Credential redaction for logs and URL validation for resource sources."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional
from urllib.parse import urlparse

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.~+/=]+", re.IGNORECASE),
    re.compile(
        r"((?:npsso|access_token|refresh_token|client_secret)[\"']?\s*[=:]\s*[\"']?)[^\"'&,\s}]+",
        re.IGNORECASE,
    ),
    re.compile(r"(['\"]token['\"]\s*:\s*['\"])[^'\"]+"),
)


class ValidationError(ValueError):
    """Raised when user supplied input fails validation."""


def sanitize(text: str) -> str:
    """Replace bearer tokens, NPSSO values and token fields in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


class SanitizingFormatter(logging.Formatter):
    """Formatter that scrubs credentials from the rendered message.

    The record itself is rewritten (``msg`` becomes the sanitized message and
    ``args`` is cleared) so handlers formatting it later see the redacted
    text as well.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.msg = sanitize(record.getMessage())
        record.args = None
        return super().format(record)


def validate_url(url: str, allowed_schemes: Optional[Iterable[str]] = None) -> str:
    """Check that ``url`` is absolute and uses one of ``allowed_schemes``."""
    schemes = [s.lower() for s in (allowed_schemes or ["http", "https"])]
    parsed = urlparse(url)
    if parsed.scheme.lower() not in schemes:
        raise ValidationError(f"URL scheme must be one of {schemes}: {url}")
    if not parsed.netloc:
        raise ValidationError(f"URL has no host: {url}")
    return url


__all__ = ["SanitizingFormatter", "ValidationError", "sanitize", "validate_url"]
