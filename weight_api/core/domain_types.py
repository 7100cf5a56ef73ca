"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - OwnerId is the verified token subject, never a client-supplied value
    - EntryId is a positive integer that fits a signed 64-bit column
    - Identity is immutable once produced by the token verifier
    - EntryChanges.value / recorded_at are None exactly when the field was absent

Design Decisions:
    - NewType over dataclass wrappers for ids: zero runtime cost, full type-checker support
    - Identity as frozen dataclass over a raw claims dict: handlers get typed access to
      subject/username/scope while extra claims still pass through (ADR: typed boundary)
    - EntryChanges over string-built SET clauses: one statement builder consumes it
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, NewType


# ─── Identity Types ──────────────────────────────────────────────

OwnerId = NewType("OwnerId", str)
EntryId = NewType("EntryId", int)

MAX_ENTRY_ID = 2**63 - 1


# ─── Pagination ──────────────────────────────────────────────────

DEFAULT_LIMIT = 100
MAX_LIMIT = 500
DEFAULT_OFFSET = 0


@dataclass(frozen=True)
class Page:
    """Clamped pagination window: 1 <= limit <= 500, offset >= 0."""
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET


# ─── Verified caller ─────────────────────────────────────────────

@dataclass(frozen=True)
class Identity:
    """Verified token output. subject is the ownership key for every record."""
    subject: OwnerId
    username: str | None = None
    scope: str | None = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Identity":
        return cls(
            subject=OwnerId(claims["sub"]),
            username=claims.get("preferred_username"),
            scope=claims.get("scope"),
            claims=MappingProxyType(dict(claims)),
        )


# ─── Partial update ──────────────────────────────────────────────

@dataclass(frozen=True)
class EntryChanges:
    """Fields to change on a weight entry. None means 'not requested'."""
    value: Decimal | None = None
    recorded_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.recorded_at is None

    def as_values(self) -> dict[str, Any]:
        """Column values for the UPDATE statement, present fields only."""
        values: dict[str, Any] = {}
        if self.value is not None:
            values["value"] = self.value
        if self.recorded_at is not None:
            values["recorded_at"] = self.recorded_at
        return values
