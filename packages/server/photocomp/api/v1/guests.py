"""
Public browsing, no authentication.

GET /guests                                   Public organizations, nine per page
GET /guests/organizations/{org_id}/events     Public events of one organization

Both take an optional ``lastEvaluatedKey`` query parameter: the URL-encoded
JSON continuation key returned by the previous page.
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from photocomp.api.deps import get_event_service, get_org_service
from photocomp.api.responses import success
from photocomp.core.errors import AppError
from photocomp.models.base import public_view
from photocomp.services.events import EventService
from photocomp.services.organizations import OrgService

router = APIRouter()


def _parse_start_key(raw: Optional[str]) -> Optional[dict]:
    if not raw:
        return None
    try:
        start_key = json.loads(raw)
    except json.JSONDecodeError:
        raise AppError("Invalid lastEvaluatedKey", 400)
    if not isinstance(start_key, dict):
        raise AppError("Invalid lastEvaluatedKey", 400)
    return start_key


@router.get("", tags=["Guests"])
async def list_public_orgs(
    last_evaluated_key: Optional[str] = Query(None, alias="lastEvaluatedKey"),
    orgs: OrgService = Depends(get_org_service),
):
    items, last_key = await orgs.find_all_public_orgs(_parse_start_key(last_evaluated_key))
    if not items and not last_key:
        return Response(status_code=204)
    return success({"organizations": [public_view(o) for o in items], "lastEvaluatedKey": last_key})


@router.get("/organizations/{org_id}/events", tags=["Guests"])
async def list_public_events(
    org_id: str,
    last_evaluated_key: Optional[str] = Query(None, alias="lastEvaluatedKey"),
    events: EventService = Depends(get_event_service),
):
    items, last_key = await events.get_all_public_organization_events(
        org_id, _parse_start_key(last_evaluated_key)
    )
    if not items:
        return Response(status_code=204)
    return success({"events": [public_view(e) for e in items], "lastEvaluatedKey": last_key})
