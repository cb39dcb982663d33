"""Fetch the NPSSO session cookie from Sony's SSO cookie endpoint.

The endpoint only answers with a value when the caller already holds a
signed-in Sony session, so a miss is routine and is reported as ``None``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
import requests

from src.config.settings import get_api_timeout
from src.utils.http_client import get_httpx_timeout

logger = logging.getLogger(__name__)

SSO_COOKIE_URL = "https://ca.account.sony.com/api/v1/ssocookie"


def _extract_npsso(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and payload.get("npsso"):
        return str(payload["npsso"])
    return None


def fetch_npsso() -> Optional[str]:
    """Blocking variant used at start-up, before the event loop runs."""
    try:
        response = requests.get(SSO_COOKIE_URL, timeout=get_api_timeout())
        response.raise_for_status()
        return _extract_npsso(response.json())
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Failed to fetch NPSSO: %s", exc)
        return None


async def fetch_npsso_async() -> Optional[str]:
    """Async variant used by request middleware and tools."""
    try:
        async with httpx.AsyncClient(timeout=get_httpx_timeout()) as client:
            response = await client.get(SSO_COOKIE_URL)
        response.raise_for_status()
        return _extract_npsso(response.json())
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Failed to fetch NPSSO: %s", exc)
        return None


__all__ = ["fetch_npsso", "fetch_npsso_async", "SSO_COOKIE_URL"]
