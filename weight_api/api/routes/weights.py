"""Weight Entries — create, list, partially update and delete the caller's entries.

Invariants:
    - Every route depends on require_identity; the subject is the only owner ever passed down
    - Path id and body are validated before the store is called
    - PUT with neither value nor recorded_at/at → 400 "Nothing to update", no store call
    - updated / deleted are row counts: 0 means "no such entry for this caller"

Design Decisions:
    - id taken as str and parsed here: a bad id is a 400 "Invalid id" after auth,
      not a FastAPI path-type 422 before it
    - Non-owner mutation returns 0, indistinguishable from a missing id (no 403/404 leak)
"""

from fastapi import APIRouter, Depends, Query

from weight_api.api.dependencies import get_record_store, require_identity
from weight_api.core.coerce_inputs import (
    clamp_pagination, coerce_weight_value, parse_entry_id,
)
from weight_api.core.domain_types import Identity
from weight_api.core.errors import InvalidTimestampError, NothingToUpdateError
from weight_api.core.repository_protocols import RecordStoreLike
from weight_api.schemas.weights import WeightCreate, WeightItem, WeightUpdate

router = APIRouter(prefix="/weights", tags=["weights"])


@router.post("")
async def create_weight(
    body: WeightCreate | None = None,
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    """Record one weight; recorded_at (or at) is optional and defaults to now."""
    body = body or WeightCreate()
    value = coerce_weight_value(body.value)
    entry_id = await store.insert_entry(
        identity.subject, value, body.timestamp_input,
    )
    return {"ok": True, "id": entry_id}


@router.get("")
async def list_weights(
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    """Caller's entries, newest first. limit 1-500 (default 100), offset >= 0."""
    page = clamp_pagination(limit, offset)
    entries = await store.list_entries(identity.subject, page)
    return {
        "ok": True,
        "items": [WeightItem.model_validate(e) for e in entries],
    }


@router.put("/{entry_id}")
async def update_weight(
    entry_id: str,
    body: WeightUpdate | None = None,
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    """Partial update: only fields present in the body are changed (0 counts as present)."""
    parsed_id = parse_entry_id(entry_id)
    body = body or WeightUpdate()
    if not body.has_value and not body.has_timestamp:
        raise NothingToUpdateError()

    value = coerce_weight_value(body.value) if body.has_value else None
    recorded_at = None
    if body.has_timestamp:
        recorded_at = body.timestamp_input
        if recorded_at is None:
            raise InvalidTimestampError()

    updated = await store.update_entry(
        identity.subject, parsed_id, value, recorded_at,
    )
    return {"ok": True, "updated": updated}


@router.delete("/{entry_id}")
async def delete_weight(
    entry_id: str,
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    """Delete one of the caller's entries. deleted is 0 when nothing matched."""
    parsed_id = parse_entry_id(entry_id)
    deleted = await store.delete_entry(identity.subject, parsed_id)
    return {"ok": True, "deleted": deleted}
