from __future__ import annotations

from typing import Any, Dict, Optional

import jwt

from src.api.client import PSNClient
from src.api.transfer import ResourceTransferManager
from src.auth.manager import get_auth_manager
from src.config.settings import Settings
from src.models.base_models import OperationResult
from src.utils.http_client import AuthenticatedClient
from src.utils.logging import get_logger

logger = get_logger("base_tools")

_PSN_CLIENT: Optional[PSNClient] = None


def get_psn_client() -> PSNClient:
    """Return the shared ``PSNClient`` bound to the singleton token manager."""
    global _PSN_CLIENT
    if _PSN_CLIENT is None:
        settings = Settings.from_env()
        http_client = AuthenticatedClient()
        _PSN_CLIENT = PSNClient(
            get_auth_manager(),
            http_client,
            ResourceTransferManager(http_client, settings.resource_tmp_dir),
        )
    return _PSN_CLIENT


def to_response(result: OperationResult, key: str = "data") -> Dict[str, Any]:
    """Shape an ``OperationResult`` the way tool callers expect it."""
    response = result.to_response()
    if result.success:
        return {"success": True, key: response.get("data")}

    error = response["error"]
    logger.debug("Tool call failed: %s", error)
    return {
        "success": False,
        "error": error["message"],
        "category": error["category"],
        "status": error["status"],
        **({"details": error["body"]} if "body" in error else {}),
    }


def describe_token(token: str) -> Dict[str, Any]:
    """Best-effort view of a JWT's claims (no signature verification)."""
    if not token:
        return {}
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        logger.debug("Access token is not a readable JWT: %s", exc)
        return {}
    return {key: claims[key] for key in ("exp", "iat", "scope", "sub") if key in claims}


__all__ = ["get_psn_client", "to_response", "describe_token"]
