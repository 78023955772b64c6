"""Success envelope shared by every route: ``{status, message?, data?}``."""

from __future__ import annotations

from typing import Any, Optional


def success(data: Any = None, message: Optional[str] = None) -> dict:
    body: dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body
