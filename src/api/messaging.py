"""Group message payloads for the PSN gaming lounge API."""

from __future__ import annotations

from typing import Any, Dict

from src.models.base_models import ResourceKind
from src.models.errors import UnsupportedVariantError

TEXT_MESSAGE_TYPE = 1
IMAGE_MESSAGE_TYPE = 3
STICKER_MESSAGE_TYPE = 1013

STICKER_PRESET = {
    "manifestFileUrl": (
        "https://psn-rsc.prod.dl.playstation.net/psn-rsc/sticker/preset/"
        "PRESET0000000002_514DB3A4FB993D12EBF3/manifest.json"
    ),
    "number": "03",
    "packageId": "PRESET0000000002",
    "type": "preset",
}

# Image messages must declare the charset explicitly.
IMAGE_CONTENT_TYPE = "application/json; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"


def build_text_message(text: str) -> Dict[str, Any]:
    return {"messageType": TEXT_MESSAGE_TYPE, "body": text}


def build_image_message(resource_id: str) -> Dict[str, Any]:
    return {
        "messageType": IMAGE_MESSAGE_TYPE,
        "messageDetail": {"imageMessageDetail": {"resourceId": resource_id}},
    }


def build_sticker_message(resource_id: str) -> Dict[str, Any]:
    detail = {"imageUrl": resource_id}
    detail.update(STICKER_PRESET)
    return {
        "messageType": STICKER_MESSAGE_TYPE,
        "messageDetail": {"stickerMessageDetail": detail},
    }


def build_resource_message(kind: ResourceKind, resource_id: str) -> Dict[str, Any]:
    """Return the message payload for a resource of ``kind``.

    Only images and stickers can be sent; every other kind raises
    ``UnsupportedVariantError`` before anything is sent.
    """
    kind = ResourceKind(kind)
    if kind is ResourceKind.IMAGE:
        return build_image_message(resource_id)
    if kind is ResourceKind.STICKER:
        return build_sticker_message(resource_id)
    raise UnsupportedVariantError(f"Sending {kind.name.lower()} resources is not supported")


def content_type_for(kind: ResourceKind) -> str:
    return IMAGE_CONTENT_TYPE if kind is ResourceKind.IMAGE else JSON_CONTENT_TYPE


__all__ = [
    "build_text_message",
    "build_image_message",
    "build_sticker_message",
    "build_resource_message",
    "content_type_for",
    "IMAGE_MESSAGE_TYPE",
    "STICKER_MESSAGE_TYPE",
    "TEXT_MESSAGE_TYPE",
]
