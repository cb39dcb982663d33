from typing import Any, Dict, List, Optional

from fastmcp.server.context import Context

from src.models.base_models import MessagingTarget
from src.utils.logging import get_logger
from .base import get_psn_client, to_response

logger = get_logger("groups")


async def create_group(invites: List[str], ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Create a messaging group.

    Args:
        invites (List[str]): Account ids to invite.
    Returns:
        Dict[str, Any]: The created group (group id and main thread) or an error.
    """
    if not invites:
        return {"success": False, "error": "Invites array is required"}
    return to_response(await get_psn_client().create_group(invites), key="group")


async def get_groups(ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    List the messaging groups of the signed-in account (up to 200).
    """
    return to_response(await get_psn_client().get_groups(), key="groups")


async def get_messages(
    group_id: str,
    thread_id: Optional[str] = None,
    ctx: Optional[Context] = None,
) -> Dict[str, Any]:
    """
    Get the messages of a group thread.

    Args:
        group_id (str): Group id.
        thread_id (Optional[str]): Thread id. Defaults to the group's main thread.
    """
    return to_response(await get_psn_client().get_messages(group_id, thread_id), key="messages")


async def get_first_group_messages(ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Get the messages of the first group's main thread, together with the group.
    """
    return to_response(await get_psn_client().get_first_group_messages())


async def send_message(
    group_id: str,
    message: str,
    thread_id: Optional[str] = None,
    ctx: Optional[Context] = None,
) -> Dict[str, Any]:
    """
    Send a text message to a group thread.

    Args:
        group_id (str): Group id.
        message (str): Message text.
        thread_id (Optional[str]): Thread id. Defaults to the group's main thread.
    """
    if not group_id or not message:
        return {"success": False, "error": "groupId and message are required"}

    target = MessagingTarget(group_id=group_id, thread_id=thread_id or "")
    result = await get_psn_client().send_message(target, message)
    if result.success:
        return {"success": True, "message": "Message sent successfully"}
    return to_response(result)
