"""Data models and error types for the PSN bridge."""

from .base_models import (
    ClientIdentity,
    CreatedGroup,
    DomainResponse,
    ErrorInfo,
    FriendProfiles,
    Group,
    GroupList,
    MessagingTarget,
    OperationResult,
    PersistedTokens,
    Profile,
    ResourceKind,
    Token,
    TokenPair,
    UserProfile,
)
from .errors import ErrorCategory, PSNError

__all__ = [
    "ClientIdentity",
    "CreatedGroup",
    "DomainResponse",
    "ErrorCategory",
    "ErrorInfo",
    "FriendProfiles",
    "Group",
    "GroupList",
    "MessagingTarget",
    "OperationResult",
    "PSNError",
    "PersistedTokens",
    "Profile",
    "ResourceKind",
    "Token",
    "TokenPair",
    "UserProfile",
]
