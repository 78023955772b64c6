"""
Optional enrichment steps.

Weather lookups, geocoding, logo URL refreshes and notification mail add
value to a response but must never fail it. ``enrich`` runs such a step and
returns either its value or a ``Skipped`` marker the caller can inspect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, TypeVar, Union

import structlog

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Skipped:
    step: str
    reason: str

    def __bool__(self) -> bool:
        return False


Enriched = Union[T, Skipped]


async def enrich(step: str, awaitable: Awaitable[T], **context) -> Enriched[T]:
    """Await an optional step, converting any failure into ``Skipped``."""
    try:
        return await awaitable
    except Exception as exc:
        reason = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        log.warning(f"{step}_skipped", reason=reason, **context)
        return Skipped(step=step, reason=reason)
