"""Weight Goal — read, create-or-replace, and delete the caller's single goal.

Invariants:
    - One goal per subject; PUT replaces value and timestamp in place
    - GET returns goal: null when the caller has none (never 404)
    - A bad at timestamp → 400 "Invalid at timestamp"
"""

from fastapi import APIRouter, Depends

from weight_api.api.dependencies import get_record_store, require_identity
from weight_api.core.coerce_inputs import coerce_weight_value
from weight_api.core.domain_types import Identity
from weight_api.core.errors import InvalidTimestampError
from weight_api.core.repository_protocols import RecordStoreLike
from weight_api.schemas.weights import GoalItem, GoalUpsert

router = APIRouter(prefix="/goal", tags=["goal"])


@router.get("")
async def get_goal(
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    goal = await store.get_goal(identity.subject)
    return {
        "ok": True,
        "goal": GoalItem.model_validate(goal) if goal is not None else None,
    }


@router.put("")
async def put_goal(
    body: GoalUpsert | None = None,
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    """Create or replace the goal. at is optional and defaults to now."""
    body = body or GoalUpsert()
    value = coerce_weight_value(body.value)
    try:
        await store.upsert_goal(identity.subject, value, body.at)
    except InvalidTimestampError:
        raise InvalidTimestampError("Invalid at timestamp") from None
    return {"ok": True}


@router.delete("")
async def delete_goal(
    identity: Identity = Depends(require_identity),
    store: RecordStoreLike = Depends(get_record_store),
):
    deleted = await store.delete_goal(identity.subject)
    return {"ok": True, "deleted": deleted}
