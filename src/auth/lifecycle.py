"""PSN token lifecycle: acquisition, expiry checks and refresh.

Access tokens are derived from the long-lived NPSSO session cookie and
persisted through :class:`~src.auth.token_store.TokenStore`. Expiry is
measured from the record's last write time, so any process writing the
same record resets the access token window as a side effect. The refresh
token shares that single timestamp.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Optional

import httpx

from src.auth.token_store import TokenStore
from src.models.base_models import ClientIdentity, Token, TokenPair
from src.models.errors import (
    AcquisitionFailedError,
    AuthenticationError,
    RefreshFailedError,
    UnauthenticatedError,
)
from src.utils.http_client import get_httpx_timeout

logger = logging.getLogger(__name__)

TOKEN_URL = "https://ca.account.sony.com/api/authz/v3/oauth/token"
TOKEN_SCOPE = "psn:mobile.v2.core psn:clientapp"


def access_token_expired(persisted_at: float, expires_in: int, now: float) -> bool:
    """Return True once ``now`` is past ``persisted_at + expires_in``."""
    return now > persisted_at + expires_in


def _parse_token_response(payload: Dict) -> TokenPair:
    access = payload.get("access_token")
    if not access:
        raise KeyError("access_token")
    return TokenPair(
        access=Token(value=access, expires_in=int(payload.get("expires_in") or 0)),
        refresh=Token(
            value=payload.get("refresh_token") or "",
            expires_in=int(payload.get("refresh_token_expires_in") or 0),
        ),
    )


class TokenLifecycleManager:
    """Owns the in-memory ``TokenPair`` and keeps it usable.

    A refresh only happens synchronously inside :meth:`ensure_access_token`
    when a caller needs a token and the cached one is stale, and at most once
    per call. A failed refresh is reported, never escalated to a new
    acquisition from the session handle.
    """

    def __init__(
        self,
        store: TokenStore,
        session_handle: str = "",
        client: Optional[ClientIdentity] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: str = TOKEN_URL,
    ) -> None:
        self.store = store
        self._session_handle = session_handle
        self._client = client or ClientIdentity()
        self._http_client = http_client
        self.token_url = token_url
        self._lock = asyncio.Lock()
        self.tokens = TokenPair()

        persisted = store.load()
        if persisted is not None:
            self.tokens = persisted.tokens

    @property
    def session_handle(self) -> str:
        return self._session_handle

    def set_session_handle(self, session_handle: str) -> None:
        """Replace the NPSSO used for future acquisitions."""
        self._session_handle = session_handle

    @property
    def client_identity(self) -> ClientIdentity:
        return self._client

    def configure_client(self, identity: ClientIdentity) -> bool:
        """Install ``identity`` unless a client id is already configured."""
        if self._client.client_id:
            return False
        self._client = identity
        return True

    async def ensure_access_token(self) -> TokenPair:
        """Return a usable token pair, acquiring or refreshing as needed."""
        async with self._lock:
            persisted = self.store.load()
            if persisted is None:
                logger.info("No persisted tokens, acquiring from session handle")
                return await self.acquire()

            self.tokens = persisted.tokens
            if not access_token_expired(
                persisted.persisted_at, self.tokens.access.expires_in, time.time()
            ):
                logger.debug("Access token is still valid")
                return self.tokens

            logger.info("Access token expired, refreshing")
            return await self.refresh()

    async def acquire(self) -> TokenPair:
        """Exchange the session handle for a fresh token pair."""
        if not self._session_handle:
            raise UnauthenticatedError("No NPSSO session handle configured")
        if not self._client.client_id:
            raise UnauthenticatedError("No client id configured")

        form = {
            "grant_type": "sso_token",
            "token_format": "jwt",
            "access_type": "offline",
            "client_id": self._client.client_id,
            "client_secret": self._client.client_secret,
            "npsso": self._session_handle,
            "scope": TOKEN_SCOPE,
        }
        try:
            tokens = await self._exchange(form)
        except AuthenticationError as exc:
            raise AcquisitionFailedError(
                f"Failed to get access token: {exc.message}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc

        self.tokens = tokens
        self.store.save(tokens)
        logger.info("Access token acquired")
        return tokens

    async def refresh(self) -> TokenPair:
        """Exchange the refresh token for a new token pair."""
        refresh_token = self.tokens.refresh.value
        if not refresh_token:
            raise RefreshFailedError("No refresh token available")

        form = {
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
            "token_format": "jwt",
            "scope": TOKEN_SCOPE,
        }
        try:
            tokens = await self._exchange(form)
        except AuthenticationError as exc:
            logger.error("Failed to refresh access token: %s", exc.message)
            raise RefreshFailedError(
                f"Failed to refresh access token: {exc.message}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc

        self.tokens = tokens
        self.store.save(tokens)
        logger.info("Access token refreshed")
        return tokens

    async def _exchange(self, form: Dict[str, str]) -> TokenPair:
        """POST ``form`` to the token endpoint and parse the token pair."""
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.token_url, data=form, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=get_httpx_timeout()) as client:
                    response = await client.post(self.token_url, data=form, headers=headers)
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"token request failed ({exc})") from exc

        if not response.is_success:
            raise AuthenticationError(
                f"token endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return _parse_token_response(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise AuthenticationError(
                f"unexpected token response ({exc})",
                status_code=response.status_code,
                body=response.text,
            ) from exc


__all__ = [
    "TokenLifecycleManager",
    "access_token_expired",
    "TOKEN_URL",
    "TOKEN_SCOPE",
]
