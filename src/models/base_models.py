"""Shared Pydantic models for the PSN bridge.

This module contains the data models used throughout the PSN bridge,
including the persisted token pair, messaging targets and the typed
payloads returned by the PlayStation Network endpoints.

The models provide type safety and validation for:
- Token persistence and lifecycle management
- Group messaging targets and resource kinds
- Profile, friends, search and group responses
- The success/failure envelope returned by every domain operation
"""

from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorCategory, PSNError


# Auth Models
class Token(BaseModel):
    """Access or refresh token.

    ``expires_in`` is relative to the moment the token was issued, not an
    absolute timestamp.
    """
    value: str = Field(default="", alias="token")
    expires_in: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_empty(self) -> bool:
        return not self.value


class TokenPair(BaseModel):
    access: Token = Field(default_factory=Token)
    refresh: Token = Field(default_factory=Token)


class PersistedTokens(BaseModel):
    """A loaded token record together with its last write time."""
    tokens: TokenPair
    persisted_at: float


class ClientIdentity(BaseModel):
    client_id: str = ""
    client_secret: str = ""

    model_config = ConfigDict(frozen=True)


# Messaging Models
class ResourceKind(IntEnum):
    IMAGE = 0
    STICKER = 1
    VIDEO = 2
    AUDIO = 3
    LINK = 4


class MessagingTarget(BaseModel):
    """Group conversation a message or resource is addressed to.

    A group's main conversation uses the group id as its thread id, so an
    empty ``thread_id`` is treated as equal to ``group_id``.
    """
    group_id: str
    thread_id: str = ""

    model_config = ConfigDict(frozen=True)

    def normalized(self) -> "MessagingTarget":
        if self.thread_id:
            return self
        return MessagingTarget(group_id=self.group_id, thread_id=self.group_id)


# PSN API Models
class PSNModel(BaseModel):
    """Lenient base for remote payloads: unknown fields are preserved."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class AvatarUrl(PSNModel):
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    size: Optional[str] = None


class PersonalDetail(PSNModel):
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")


class EarnedTrophies(PSNModel):
    bronze: int = 0
    silver: int = 0
    gold: int = 0
    platinum: int = 0


class TrophySummary(PSNModel):
    earned_trophies: Optional[EarnedTrophies] = Field(default=None, alias="earnedTrophies")
    level: Optional[int] = None
    progress: Optional[int] = None


class Presence(PSNModel):
    has_broadcast_data: Optional[bool] = Field(default=None, alias="hasBroadcastData")
    last_online_date: Optional[str] = Field(default=None, alias="lastOnlineDate")
    online_status: Optional[str] = Field(default=None, alias="onlineStatus")


class Profile(PSNModel):
    """PSN user profile.

    :param online_id: Public PSN name of the user
    :type online_id: Optional[str]
    :param account_id: Numeric account identifier (as a string)
    :type account_id: Optional[str]
    :param avatar_urls: Avatar images in the available sizes
    :type avatar_urls: List[AvatarUrl]
    :param trophy_summary: Trophy level and earned trophy counts
    :type trophy_summary: Optional[TrophySummary]
    :param presences: Online status entries
    :type presences: List[Presence]
    """
    online_id: Optional[str] = Field(default=None, alias="onlineId")
    account_id: Optional[str] = Field(default=None, alias="accountId")
    np_id: Optional[str] = Field(default=None, alias="npId")
    about_me: Optional[str] = Field(default=None, alias="aboutMe")
    avatar_urls: List[AvatarUrl] = Field(default_factory=list, alias="avatarUrls")
    languages_used: List[str] = Field(default_factory=list, alias="languagesUsed")
    plus: Optional[int] = None
    is_officially_verified: Optional[bool] = Field(default=None, alias="isOfficiallyVerified")
    personal_detail: Optional[PersonalDetail] = Field(default=None, alias="personalDetail")
    primary_online_status: Optional[str] = Field(default=None, alias="primaryOnlineStatus")
    presences: List[Presence] = Field(default_factory=list)
    trophy_summary: Optional[TrophySummary] = Field(default=None, alias="trophySummary")
    friend_relation: Optional[str] = Field(default=None, alias="friendRelation")
    blocking: Optional[bool] = None
    following: Optional[bool] = None


class UserProfile(PSNModel):
    profile: Profile


class FriendProfiles(PSNModel):
    profiles: List[Profile]


class SocialMetadata(PSNModel):
    account_id: Optional[str] = Field(default=None, alias="accountId")
    online_id: Optional[str] = Field(default=None, alias="onlineId")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    country: Optional[str] = None
    language: Optional[str] = None
    is_ps_plus: Optional[bool] = Field(default=None, alias="isPsPlus")
    is_officially_verified: Optional[bool] = Field(default=None, alias="isOfficiallyVerified")
    relationship_state: Optional[str] = Field(default=None, alias="relationshipState")
    mutual_friends_count: Optional[int] = Field(default=None, alias="mutualFriendsCount")


class SearchResult(PSNModel):
    id: Optional[str] = None
    type: Optional[str] = None
    score: Optional[float] = None
    relevancy_score: Optional[float] = Field(default=None, alias="relevancyScore")
    social_metadata: Optional[SocialMetadata] = Field(default=None, alias="socialMetadata")


class DomainResponse(PSNModel):
    """One domain block of a universal search response."""
    domain: Optional[str] = None
    domain_title: Optional[str] = Field(default=None, alias="domainTitle")
    next: Optional[str] = None
    results: List[SearchResult] = Field(default_factory=list)
    total_result_count: Optional[int] = Field(default=None, alias="totalResultCount")
    zero_state: Optional[bool] = Field(default=None, alias="zeroState")


class Member(PSNModel):
    account_id: Optional[str] = Field(default=None, alias="accountId")
    online_id: Optional[str] = Field(default=None, alias="onlineId")


class LatestMessage(PSNModel):
    body: Optional[str] = None
    created_timestamp: Optional[str] = Field(default=None, alias="createdTimestamp")
    message_type: Optional[int] = Field(default=None, alias="messageType")
    message_uid: Optional[str] = Field(default=None, alias="messageUid")
    sender: Optional[Member] = None


class MainThread(PSNModel):
    thread_id: Optional[str] = Field(default=None, alias="threadId")
    exists_unread_message: Optional[bool] = Field(default=None, alias="existsUnreadMessage")
    latest_message: Optional[LatestMessage] = Field(default=None, alias="latestMessage")
    modified_timestamp: Optional[str] = Field(default=None, alias="modifiedTimestamp")


class Group(PSNModel):
    group_id: str = Field(alias="groupId")
    group_type: Optional[int] = Field(default=None, alias="groupType")
    group_name: Optional[Dict[str, Any]] = Field(default=None, alias="groupName")
    is_favorite: Optional[bool] = Field(default=None, alias="isFavorite")
    main_thread: Optional[MainThread] = Field(default=None, alias="mainThread")
    members: List[Member] = Field(default_factory=list)
    joined_timestamp: Optional[str] = Field(default=None, alias="joinedTimestamp")
    modified_timestamp: Optional[str] = Field(default=None, alias="modifiedTimestamp")


class GroupList(PSNModel):
    groups: List[Group]


class CreatedGroup(PSNModel):
    group_id: str = Field(alias="groupId")
    has_all_account_invited: Optional[bool] = Field(default=None, alias="hasAllAccountInvited")
    main_thread: Optional[MainThread] = Field(default=None, alias="mainThread")


# Operation envelope
class ErrorInfo(BaseModel):
    """Diagnostic attached to a failed operation."""
    category: ErrorCategory
    message: str
    status: int
    status_code: Optional[int] = None
    body: Any = None

    @classmethod
    def from_error(cls, error: PSNError) -> "ErrorInfo":
        return cls(
            category=error.category,
            message=error.message,
            status=error.category.http_status,
            status_code=error.status_code,
            body=error.body,
        )


class OperationResult(BaseModel):
    """Success flag plus payload, or an error description.

    :param success: Whether the operation completed
    :type success: bool
    :param data: Typed payload on success (a model, bytes, a list or a dict)
    :type data: Any
    :param error: Error description on failure
    :type error: Optional[ErrorInfo]
    """
    success: bool
    data: Any = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: PSNError) -> "OperationResult":
        return cls(success=False, error=ErrorInfo.from_error(error))

    def to_response(self) -> Dict[str, Any]:
        """Serialise for the tool layer using the remote field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
