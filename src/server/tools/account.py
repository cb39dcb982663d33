from typing import Any, Dict, Optional

from fastmcp.server.context import Context

from src.api.client import DEFAULT_SEARCH_DOMAIN
from src.auth.npsso import fetch_npsso_async
from src.utils.logging import get_logger
from .base import describe_token, get_psn_client, to_response

logger = get_logger("account")


async def get_npsso(ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Fetch the NPSSO session cookie from Sony's SSO endpoint.

    Only succeeds when the server itself holds a signed-in Sony session.

    Returns:
        Dict[str, Any]: {"success": True, "npsso": ...} or an error message.
    """
    npsso = await fetch_npsso_async()
    if not npsso:
        return {"success": False, "error": "Failed to get NPSSO token"}
    return {"success": True, "npsso": npsso}


async def get_access_token(ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Return the current PSN token pair, acquiring or refreshing it if needed.

    Returns:
        Dict[str, Any]: The token pair plus the access token's readable JWT claims.
    """
    result = await get_psn_client().ensure_access_token()
    response = to_response(result, key="tokens")
    if result.success:
        response["claims"] = describe_token(result.data.access.value)
    return response


async def get_profile(name: str = "", ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Get a PSN profile.

    Args:
        name (str): Online id of the user to look up. Leave empty for the signed-in account.
    Returns:
        Dict[str, Any]: The profile (online id, avatars, trophies, presence) or an error.
    """
    return to_response(await get_psn_client().get_profile(name), key="profile")


async def get_friends(ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Get the friend list of the signed-in account.

    Returns:
        Dict[str, Any]: {"friends": {"profiles": [...]}} or an error.
    """
    return to_response(await get_psn_client().get_friends(), key="friends")


async def delete_friend(name: str, ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Remove a user from the signed-in account's friend list.

    Args:
        name (str): Online id of the friend to remove.
    """
    result = await get_psn_client().delete_friend(name)
    response = to_response(result)
    if result.success:
        response = {"success": True, "message": f"Friend {name} deleted successfully"}
    return response


async def search(
    name: str,
    domain: str = DEFAULT_SEARCH_DOMAIN,
    ctx: Optional[Context] = None,
) -> Dict[str, Any]:
    """
    Universal search across PSN accounts.

    Args:
        name (str): Search term.
        domain (str): Search domain, "SocialAllAccounts" by default.
    Returns:
        Dict[str, Any]: The first domain response with its ranked results.
    """
    if not name:
        return {"success": False, "error": "Search name is required"}
    return to_response(await get_psn_client().search(name, domain), key="result")
