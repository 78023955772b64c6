"""Key helpers shared by every single-table item."""

from __future__ import annotations

from datetime import datetime, timezone

ENTITY = "ENTITY"

# Storage-only attributes, never sent to clients
KEY_ATTRIBUTES = frozenset({"PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK"})


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def key(pk: str, sk: str) -> dict:
    return {"PK": pk, "SK": sk}


def public_view(item: dict) -> dict:
    """Drop table keys (and password hashes) from an item before returning it."""
    return {k: v for k, v in item.items() if k not in KEY_ATTRIBUTES and k != "password"}
