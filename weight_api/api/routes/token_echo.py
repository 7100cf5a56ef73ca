"""Token Echo — POST /test round-trips an input and the caller's identity claims.

Used by clients to confirm that login, token refresh and the API agree on who
the caller is, without touching storage.
"""

import json

from fastapi import APIRouter, Depends

from weight_api.api.dependencies import require_identity
from weight_api.core.domain_types import Identity
from weight_api.schemas.weights import EchoInput

router = APIRouter(tags=["auth"])


def stringify_input(raw: object) -> str:
    """Strings pass through, null becomes "", anything else is JSON-encoded."""
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return json.dumps(raw, separators=(",", ":"))


@router.post("/test")
async def echo_identity(
    body: EchoInput | None = None,
    identity: Identity = Depends(require_identity),
):
    body = body or EchoInput()
    return {
        "ok": True,
        "received": stringify_input(body.input),
        "sub": identity.subject,
        "username": identity.username,
        "scope": identity.scope,
    }
