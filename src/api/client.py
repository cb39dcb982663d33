"""PlayStation Network domain operations.

``PSNClient`` is the boundary every caller goes through. Each operation
first asks the token lifecycle manager for a usable access token and fails
fast without touching the network if there is none. Failures of any kind
come back as a failed ``OperationResult``; nothing is raised past this class.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.auth.lifecycle import TokenLifecycleManager
from src.models.base_models import (
    CreatedGroup,
    DomainResponse,
    FriendProfiles,
    GroupList,
    MessagingTarget,
    OperationResult,
    ResourceKind,
    Token,
    UserProfile,
)
from src.models.errors import MalformedResponseError, PSNError, UnsupportedVariantError
from src.utils.http_client import AuthenticatedClient, RequestDescriptor, error_from_call

from .messaging import build_resource_message, build_text_message, content_type_for
from .transfer import MESSAGING_BASE_URL, ResourceTransferManager

logger = logging.getLogger(__name__)

PROFILE_BASE_URL = os.getenv(
    "PSN_PROFILE_BASE_URL", "https://us-prof.np.community.playstation.net/userProfile"
)
SEARCH_BASE_URL = os.getenv("PSN_SEARCH_BASE_URL", "https://m.np.playstation.com/api/search")

PROFILE_FIELDS = (
    "npId,onlineId,accountId,avatarUrls,plus,aboutMe,languagesUsed,"
    "trophySummary(@default,level,progress,earnedTrophies),isOfficiallyVerified,"
    "personalDetail(@default,profilePictureUrls),personalDetailSharing,"
    "personalDetailSharingRequestMessageFlag,primaryOnlineStatus,"
    "presences(@default,@titleInfo,platform,lastOnlineDate,hasBroadcastData),"
    "requestMessageFlag,blocking,friendRelation,following,consoleAvailability"
)
GROUP_FIELDS = (
    "groupName,groupIcon,members,mainThread,joinedTimestamp,modifiedTimestamp,"
    "totalGroupCount,isFavorite,existsNewArrival,partySessions"
)
DEFAULT_SEARCH_DOMAIN = "SocialAllAccounts"
LANGUAGE_HEADERS = {"Accept-Language": "en-US"}

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], payload: Any, action: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponseError(f"{action}: unexpected response shape", body=payload) from exc


def _require(payload: Any, key: str, action: str) -> None:
    if not isinstance(payload, dict) or not payload.get(key):
        raise MalformedResponseError(f"{action}: response has no '{key}'", body=payload)


class PSNClient:
    """Typed facade over the PSN profile, search and messaging APIs.

    :param auth: Token lifecycle manager shared by all operations
    :param http_client: Authenticated client used for every call
    :param transfer: Resource transfer manager; built on ``http_client`` when
        omitted
    """

    def __init__(
        self,
        auth: TokenLifecycleManager,
        http_client: AuthenticatedClient,
        transfer: Optional[ResourceTransferManager] = None,
    ) -> None:
        self.auth = auth
        self.http_client = http_client
        self.transfer = transfer or ResourceTransferManager(http_client)

    async def _guard(
        self, action: str, operation: Callable[[Token], Awaitable[Any]]
    ) -> OperationResult:
        """Ensure a token, run ``operation`` and fold errors into the result."""
        try:
            tokens = await self.auth.ensure_access_token()
            return OperationResult.ok(await operation(tokens.access))
        except PSNError as exc:
            logger.error("%s failed [%s]: %s", action, exc.category.value, exc.message)
            return OperationResult.failed(exc)

    async def _request(
        self, token: Token, descriptor: RequestDescriptor, action: str
    ) -> Any:
        result = await self.http_client.call(descriptor, token)
        if not result.ok:
            raise error_from_call(result, action)
        return result.payload

    async def ensure_access_token(self) -> OperationResult:
        try:
            tokens = await self.auth.ensure_access_token()
        except PSNError as exc:
            logger.error("Failed to get access token [%s]: %s", exc.category.value, exc.message)
            return OperationResult.failed(exc)
        return OperationResult.ok(tokens)

    async def get_profile(self, name: str = "") -> OperationResult:
        """Profile of ``name``, or of the signed-in account when empty."""

        async def operation(token: Token) -> UserProfile:
            return await self._fetch_profile(token, name)

        return await self._guard("Get profile", operation)

    async def _fetch_profile(self, token: Token, name: str) -> UserProfile:
        action = "Failed to get profile"
        payload = await self._request(
            token,
            RequestDescriptor(
                url=f"{PROFILE_BASE_URL}/v1/users/{name or 'me'}/profile2?fields={PROFILE_FIELDS}"
            ),
            action,
        )
        _require(payload, "profile", action)
        return _parse(UserProfile, payload, action)

    async def get_friends(self) -> OperationResult:
        async def operation(token: Token) -> FriendProfiles:
            action = "Failed to get friends"
            payload = await self._request(
                token,
                RequestDescriptor(
                    url=f"{PROFILE_BASE_URL}/v1/users/me/friends/profiles2?fields={PROFILE_FIELDS}"
                ),
                action,
            )
            if not isinstance(payload, dict) or "profiles" not in payload:
                raise MalformedResponseError(f"{action}: response has no 'profiles'", body=payload)
            return _parse(FriendProfiles, payload, action)

        return await self._guard("Get friends", operation)

    async def delete_friend(self, name: str) -> OperationResult:
        """Remove ``name`` from the signed-in account's friend list."""

        async def operation(token: Token) -> None:
            own = await self._fetch_profile(token, "")
            online_id = own.profile.online_id
            if not online_id:
                raise MalformedResponseError("Own profile has no onlineId")
            await self._request(
                token,
                RequestDescriptor(
                    url=f"{PROFILE_BASE_URL}/v1/users/{online_id}/friendList/{name}",
                    method="DELETE",
                ),
                "Failed to delete friend",
            )
            return None

        return await self._guard("Delete friend", operation)

    async def search(self, term: str, domain: str = DEFAULT_SEARCH_DOMAIN) -> OperationResult:
        """Universal search; returns the first domain block of the response."""

        async def operation(token: Token) -> DomainResponse:
            action = "Failed to universal search"
            payload = await self._request(
                token,
                RequestDescriptor(
                    url=f"{SEARCH_BASE_URL}/v1/universalSearch",
                    method="POST",
                    body=json.dumps(
                        {"searchTerm": term, "domainRequests": [{"domain": domain or DEFAULT_SEARCH_DOMAIN}]}
                    ),
                ),
                action,
            )
            domains = payload.get("domainResponses") if isinstance(payload, dict) else None
            if not isinstance(domains, list) or not domains:
                raise MalformedResponseError(
                    f"{action}: response has no 'domainResponses'", body=payload
                )
            return _parse(DomainResponse, domains[0], action)

        return await self._guard("Universal search", operation)

    async def create_group(self, account_ids: List[str]) -> OperationResult:
        """Create a group inviting ``account_ids``."""

        async def operation(token: Token) -> CreatedGroup:
            action = "Failed to create group"
            payload = await self._request(
                token,
                RequestDescriptor(
                    url=f"{MESSAGING_BASE_URL}/v1/groups",
                    method="POST",
                    body=json.dumps({"invitees": [{"accountId": a} for a in account_ids]}),
                ),
                action,
            )
            _require(payload, "groupId", action)
            return _parse(CreatedGroup, payload, action)

        return await self._guard("Create group", operation)

    async def get_groups(self) -> OperationResult:
        async def operation(token: Token) -> GroupList:
            return await self._fetch_groups(token)

        return await self._guard("Get groups", operation)

    async def _fetch_groups(self, token: Token) -> GroupList:
        action = "Failed to get groups"
        payload = await self._request(
            token,
            RequestDescriptor(
                url=(
                    f"{MESSAGING_BASE_URL}/v1/members/me/groups?favoriteFilter=notFavorite"
                    f"&includeFields={GROUP_FIELDS}&limit=200"
                ),
                headers=dict(LANGUAGE_HEADERS),
            ),
            action,
        )
        if not isinstance(payload, dict) or "groups" not in payload:
            raise MalformedResponseError(f"{action}: response has no 'groups'", body=payload)
        return _parse(GroupList, payload, action)

    async def get_messages(self, group_id: str, thread_id: Optional[str] = None) -> OperationResult:
        """Messages of a thread; the group's main thread when ``thread_id`` is empty."""

        async def operation(token: Token) -> Any:
            return await self._fetch_messages(
                token, MessagingTarget(group_id=group_id, thread_id=thread_id or "")
            )

        return await self._guard("Get messages", operation)

    async def _fetch_messages(self, token: Token, target: MessagingTarget) -> Any:
        target = target.normalized()
        return await self._request(
            token,
            RequestDescriptor(
                url=(
                    f"{MESSAGING_BASE_URL}/v1/members/me/groups/{target.group_id}"
                    f"/threads/{target.thread_id}/messages"
                ),
                headers=dict(LANGUAGE_HEADERS),
            ),
            "Failed to get messages",
        )

    async def get_first_group_messages(self) -> OperationResult:
        """Messages of the first group's main thread, together with that group."""

        async def operation(token: Token) -> Dict[str, Any]:
            groups = await self._fetch_groups(token)
            if not groups.groups:
                raise MalformedResponseError("No groups available")
            first = groups.groups[0]
            if first.main_thread is None or not first.main_thread.thread_id:
                raise MalformedResponseError(
                    "First group does not have a valid thread",
                    body=first.model_dump(by_alias=True, exclude_none=True),
                )
            messages = await self._fetch_messages(
                token,
                MessagingTarget(group_id=first.group_id, thread_id=first.main_thread.thread_id),
            )
            return {"group": first, "messages": messages}

        return await self._guard("Get first group messages", operation)

    async def send_message(self, target: MessagingTarget, text: str) -> OperationResult:
        async def operation(token: Token) -> None:
            await self._post_message(token, target, build_text_message(text), "application/json")

        return await self._guard("Send message", operation)

    async def _post_message(
        self, token: Token, target: MessagingTarget, payload: Dict[str, Any], content_type: str
    ) -> None:
        target = target.normalized()
        await self._request(
            token,
            RequestDescriptor(
                url=f"{MESSAGING_BASE_URL}/v1/groups/{target.group_id}/threads/{target.thread_id}/messages",
                method="POST",
                content_type=content_type,
                body=json.dumps(payload),
            ),
            "Failed to send message",
        )

    async def add_resource(self, target: MessagingTarget, source: str) -> OperationResult:
        """Upload a local file or an image link; returns the resource id."""

        async def operation(token: Token) -> str:
            return await self.transfer.upload(target, source, token)

        return await self._guard("Add resource", operation)

    async def send_resource(
        self, target: MessagingTarget, resource_id: str, kind: ResourceKind
    ) -> OperationResult:
        """Post a previously uploaded resource as an image or sticker message."""
        try:
            kind = ResourceKind(kind)
            payload = build_resource_message(kind, resource_id)
        except ValueError:
            return OperationResult.failed(UnsupportedVariantError(f"Unknown resource kind: {kind}"))
        except UnsupportedVariantError as exc:
            logger.error("Send resource failed [%s]: %s", exc.category.value, exc.message)
            return OperationResult.failed(exc)

        async def operation(token: Token) -> None:
            await self._post_message(token, target, payload, content_type_for(kind))

        return await self._guard("Send resource", operation)

    async def get_resource(self, group_id: str, resource_id: str) -> OperationResult:
        """Download a resource; ``data`` holds ``content`` bytes and ``content_type``."""

        async def operation(token: Token) -> Dict[str, Any]:
            content, content_type = await self.transfer.download(group_id, resource_id, token)
            return {"content": content, "content_type": content_type}

        return await self._guard("Get resource", operation)


def encode_resource(data: Dict[str, Any]) -> Dict[str, Any]:
    """JSON friendly view of a downloaded resource."""
    return {
        "content_type": data["content_type"],
        "content_base64": base64.b64encode(data["content"]).decode("ascii"),
        "size": len(data["content"]),
    }


__all__ = ["PSNClient", "encode_resource", "PROFILE_FIELDS", "DEFAULT_SEARCH_DOMAIN"]
