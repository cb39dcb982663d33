"""PSN domain operations, messaging payloads and resource transfer."""

from .client import PSNClient
from .transfer import ResourceTransferManager

__all__ = ["PSNClient", "ResourceTransferManager"]
