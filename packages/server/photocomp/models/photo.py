"""Photo items (``PHOTO#<id>``) and tags (``TAG#<userId>`` / ``PHOTO#<photoId>``)."""

from __future__ import annotations

from photocomp.models.base import ENTITY, utcnow_iso
from photocomp.models.event import event_pk

PHOTO_TYPE = "PHOTO"
TAG_TYPE = "TAG"


def photo_pk(photo_id: str) -> str:
    return f"PHOTO#{photo_id}"


def tag_pk(user_id: str) -> str:
    return f"TAG#{user_id}"


def photo_object_key(event_id: str, photo_id: str, extension: str, size: str | None = None) -> str:
    suffix = f"_{size}" if size else ""
    return f"photos/{event_id}/{photo_id}{suffix}.{extension}"


def new_photo_item(
    photo_id: str,
    event_id: str,
    uploaded_by: str,
    urls: dict,
    metadata: dict,
) -> dict:
    return {
        "PK": photo_pk(photo_id),
        "SK": ENTITY,
        "GSI2PK": event_pk(event_id),
        "GSI2SK": photo_pk(photo_id),
        "id": photo_id,
        "eventId": event_id,
        "url": urls["original"],
        "urls": urls,
        "uploadedBy": uploaded_by,
        "uploadedAt": utcnow_iso(),
        "metadata": metadata,
        "type": PHOTO_TYPE,
    }


def new_tag_item(tag_id: str, user_id: str, photo_id: str, event_id: str, tagged_by: str) -> dict:
    return {
        "PK": tag_pk(user_id),
        "SK": photo_pk(photo_id),
        "GSI1PK": photo_pk(photo_id),
        "GSI1SK": tag_pk(user_id),
        "id": tag_id,
        "userId": user_id,
        "photoId": photo_id,
        "eventId": event_id,
        "taggedBy": tagged_by,
        "taggedAt": utcnow_iso(),
        "type": TAG_TYPE,
    }
