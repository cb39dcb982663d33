"""Request middleware that supplies PSN credentials to the token manager."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from fastmcp.server.dependencies import get_http_request
from fastmcp.server.middleware import Middleware, MiddlewareContext

from src.models.base_models import ClientIdentity

from .lifecycle import TokenLifecycleManager
from .manager import get_auth_manager
from .npsso import fetch_npsso_async

logger = logging.getLogger(__name__)

NPSSO_HEADER = "x-npsso"
CLIENT_ID_HEADER = "x-client-id"
CLIENT_SECRET_HEADER = "x-client-secret"


def _request_headers() -> Mapping[str, str]:
    try:
        http_request = get_http_request()
    except RuntimeError as exc:
        logger.debug("No HTTP request in context: %s", exc)
        return {}
    if http_request is None:
        return {}
    return http_request.headers


@dataclass
class AuthConfig:
    """Which credential sources the middleware may use."""

    enabled: bool = True
    fetch_npsso: bool = True


def create_credentials_config() -> AuthConfig:
    return AuthConfig(
        enabled=True,
        fetch_npsso=os.getenv("PSN_FETCH_NPSSO", "true").lower() != "false",
    )


class CredentialsMiddleware(Middleware):
    """Primes the shared token manager from request headers.

    Priority for the session handle: the ``NPSSO`` environment variable,
    then an ``x-npsso`` header, then a fetch from the SSO cookie endpoint.
    ``x-client-id`` / ``x-client-secret`` only apply while no client id is
    configured.
    """

    def __init__(self, auth: TokenLifecycleManager, config: Optional[AuthConfig] = None):
        super().__init__()
        self._auth = auth
        self._config = config or AuthConfig()

    async def on_request(self, context: MiddlewareContext, call_next):
        headers = _request_headers()

        npsso = headers.get(NPSSO_HEADER, "").strip()
        if npsso and not os.getenv("NPSSO") and npsso != self._auth.session_handle:
            logger.debug("Using client-provided NPSSO (length: %d)", len(npsso))
            self._auth.set_session_handle(npsso)

        client_id = headers.get(CLIENT_ID_HEADER, "").strip()
        if client_id:
            installed = self._auth.configure_client(
                ClientIdentity(
                    client_id=client_id,
                    client_secret=headers.get(CLIENT_SECRET_HEADER, "").strip(),
                )
            )
            if installed:
                logger.debug("Using client-provided client id")

        if not self._auth.session_handle and self._config.fetch_npsso:
            logger.info("NPSSO not found, attempting to fetch from Sony API...")
            fetched = await fetch_npsso_async()
            if fetched:
                self._auth.set_session_handle(fetched)
                logger.info("NPSSO fetched successfully")

        return await call_next(context)


def create_auth_middleware(
    config: AuthConfig,
    *,
    auth_manager: TokenLifecycleManager | None = None,
) -> List[Middleware]:
    """Return the middleware stack used by :mod:`src.server.mcp_server`."""
    if not config.enabled:
        return []

    auth = auth_manager or get_auth_manager()
    return [CredentialsMiddleware(auth, config)]


__all__: Iterable[str] = [
    "AuthConfig",
    "CredentialsMiddleware",
    "create_auth_middleware",
    "create_credentials_config",
    "NPSSO_HEADER",
    "CLIENT_ID_HEADER",
    "CLIENT_SECRET_HEADER",
]
