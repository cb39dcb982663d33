"""Authenticated HTTP client for PlayStation Network API calls.

This module provides the single dispatch point every domain operation goes
through: one bearer-authorised request per call, uniform content
negotiation, and a normalised ``CallResult`` instead of exceptions.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

import httpx

from src.config.settings import get_api_timeout
from src.models.base_models import Token
from src.models.errors import PSNError, RemoteRejectedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


def get_httpx_timeout() -> httpx.Timeout:
    """Translate the configured (connect, read) pair into an httpx timeout."""
    connect, read = get_api_timeout()
    return httpx.Timeout(read, connect=connect)


class FailureKind(str, Enum):
    REMOTE_REJECTED = "remote_rejected"
    NO_RESPONSE = "no_response"
    REQUEST_INVALID = "request_invalid"


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to issue one outbound call.

    :param url: Absolute request URL, including any query string
    :param method: HTTP method
    :param content_type: Value of the ``Content-Type`` header
    :param headers: Extra headers; an ``Authorization`` entry is ignored
    :param body: Text or binary payload, sent verbatim
    :param binary_response: Return the raw response bytes instead of JSON
    """

    url: str
    method: str = "GET"
    content_type: str = DEFAULT_CONTENT_TYPE
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    binary_response: bool = False


@dataclass(frozen=True)
class CallResult:
    ok: bool
    payload: Any = None
    status_code: Optional[int] = None
    body: Any = None
    content_type: Optional[str] = None
    failure: Optional[FailureKind] = None
    reason: str = ""

    @classmethod
    def success(
        cls, payload: Any, *, status_code: int, content_type: Optional[str] = None
    ) -> "CallResult":
        return cls(ok=True, payload=payload, status_code=status_code, content_type=content_type)

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        *,
        reason: str = "",
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> "CallResult":
        return cls(ok=False, failure=failure, reason=reason, status_code=status_code, body=body)


def error_from_call(result: CallResult, action: str) -> PSNError:
    """Build the exception matching a failed ``CallResult``."""
    if result.failure is FailureKind.REMOTE_REJECTED:
        return RemoteRejectedError(
            f"{action}: remote rejected the request ({result.status_code})",
            status_code=result.status_code,
            body=result.body,
        )
    if result.failure is FailureKind.NO_RESPONSE:
        return TransportError(f"{action}: no response received ({result.reason})")
    return TransportError(f"{action}: request could not be built ({result.reason})")


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


class AuthenticatedClient(httpx.AsyncClient):
    """HTTP client that authorises every PSN call with a bearer token.

    Key Features:
        - Rejects calls without a token before any request is built
        - Injects the ``Authorization`` header last so it cannot be overridden
        - Passes request bodies through untouched (JSON text or binary)
        - Collapses every failure into a ``CallResult`` with a ``FailureKind``

    No retries are performed here; the only automatic retry in the bridge is
    the token manager's refresh-on-expiry.
    """

    # anything we consider "polluted" and must remove from descriptor headers
    _FORBID_SUBSTRS = ("authorization",)

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("timeout", get_httpx_timeout())
        super().__init__(*args, **kwargs)

    async def send(self, request: httpx.Request, **kwargs) -> httpx.Response:
        logger.debug(f"=== SEND: {request.method} {request.url}")
        for k, v in request.headers.items():
            if k.lower() == "authorization":
                logger.debug(f"  {k}: [REDACTED]")
            else:
                logger.debug(f"  {k}: {v}")

        resp = await super().send(request, **kwargs)
        logger.debug(f"=== RESPONSE: {resp.status_code} for {request.method} {request.url}")
        return resp

    def _psn_headers(self, descriptor: RequestDescriptor, token: Token) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        removed = []
        for key, value in descriptor.headers.items():
            if any(s in key.lower() for s in self._FORBID_SUBSTRS):
                removed.append(key)
                continue
            headers[key] = value
        if removed:
            logger.debug("Scrubbed headers from descriptor: %s", removed)

        headers["Content-Type"] = descriptor.content_type or DEFAULT_CONTENT_TYPE
        headers["Authorization"] = f"Bearer {token.value}"
        return headers

    async def call(self, descriptor: RequestDescriptor, token: Token) -> CallResult:
        """Issue one authorised request described by ``descriptor``."""
        if token.is_empty:
            logger.error("API call refused, no access token: %s", descriptor.url)
            return CallResult.failed(FailureKind.REQUEST_INVALID, reason="missing access token")

        try:
            request = self.build_request(
                descriptor.method,
                descriptor.url,
                headers=self._psn_headers(descriptor, token),
                content=descriptor.body,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, UnicodeEncodeError) as exc:
            logger.error(f"API call failed: {exc}")
            logger.error(f"URL: {descriptor.url}")
            return CallResult.failed(FailureKind.REQUEST_INVALID, reason=str(exc))

        if request.url.scheme not in ("http", "https") or not request.url.host:
            logger.error(f"API call failed: not an absolute http(s) URL: {descriptor.url}")
            return CallResult.failed(FailureKind.REQUEST_INVALID, reason="invalid URL")

        try:
            response = await self.send(request)
        except httpx.RequestError as exc:
            logger.error("API call failed: No response received")
            logger.error(f"URL: {descriptor.url}")
            return CallResult.failed(FailureKind.NO_RESPONSE, reason=str(exc) or type(exc).__name__)

        content_type = response.headers.get("content-type")
        if not response.is_success:
            body = _decode_body(response)
            logger.error(f"API call failed: {response.reason_phrase}")
            logger.error(f"Status: {response.status_code}")
            logger.error(f"URL: {descriptor.url}")
            logger.error(f"Response data: {body}")
            return CallResult.failed(
                FailureKind.REMOTE_REJECTED,
                reason=response.reason_phrase,
                status_code=response.status_code,
                body=body,
            )

        if descriptor.binary_response:
            payload: Any = response.content
        else:
            payload = _decode_body(response)
        return CallResult.success(
            payload, status_code=response.status_code, content_type=content_type
        )


__all__ = [
    "AuthenticatedClient",
    "CallResult",
    "FailureKind",
    "RequestDescriptor",
    "error_from_call",
    "get_httpx_timeout",
]
