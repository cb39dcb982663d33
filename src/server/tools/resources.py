from typing import Any, Dict, Optional, Union

from fastmcp.server.context import Context

from src.api.client import encode_resource
from src.models.base_models import MessagingTarget, ResourceKind
from src.utils.logging import get_logger
from .base import get_psn_client, to_response

logger = get_logger("resources")


def _resource_kind(value: Union[int, str]) -> Optional[ResourceKind]:
    if isinstance(value, str) and not value.isdigit():
        return ResourceKind.__members__.get(value.upper())
    try:
        return ResourceKind(int(value))
    except ValueError:
        return None


async def add_resource(group_id: str, path: str, ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Upload an image to a group so it can be sent as an image or sticker.

    Args:
        group_id (str): Group id.
        path (str): Local file path, or an http(s) link ending in .png, .jpg or .jpeg.
    Returns:
        Dict[str, Any]: {"resourceId": ...} on success.
    """
    if not group_id or not path:
        return {"success": False, "error": "groupId and path are required"}
    result = await get_psn_client().add_resource(MessagingTarget(group_id=group_id), path)
    return to_response(result, key="resourceId")


async def send_resource(
    group_id: str,
    resource_id: str,
    type: Union[int, str],
    thread_id: Optional[str] = None,
    ctx: Optional[Context] = None,
) -> Dict[str, Any]:
    """
    Send an uploaded resource to a group thread.

    Args:
        group_id (str): Group id.
        resource_id (str): Id returned by add_resource.
        type (int | str): 0/"image" or 1/"sticker". Video, audio and link are not supported.
        thread_id (Optional[str]): Thread id. Defaults to the group's main thread.
    """
    kind = _resource_kind(type)
    if not group_id or not resource_id or kind is None:
        return {"success": False, "error": "groupId, resourceId, and a valid type are required"}

    target = MessagingTarget(group_id=group_id, thread_id=thread_id or "")
    result = await get_psn_client().send_resource(target, resource_id, kind)
    if result.success:
        return {"success": True, "message": "Resource sent successfully"}
    return to_response(result)


async def get_resource(group_id: str, resource_id: str, ctx: Optional[Context] = None) -> Dict[str, Any]:
    """
    Download a group resource.

    Returns:
        Dict[str, Any]: content_type, size and the base64 encoded bytes.
    """
    result = await get_psn_client().get_resource(group_id, resource_id)
    if not result.success:
        return to_response(result)
    return {"success": True, "resource": encode_resource(result.data)}
