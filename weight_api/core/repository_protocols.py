"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Every store method takes the owner as a mandatory scoping parameter
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
      (ADR: routes accept the SQLAlchemy store or an in-memory fake alike)
    - Async in Protocol: boundary methods are async because implementations do IO
"""

from decimal import Decimal
from datetime import datetime
from typing import Protocol

from weight_api.core.domain_types import EntryId, OwnerId, Page


class WeightEntryLike(Protocol):
    """Structural contract for weight entry rows returned by a store."""
    id: int
    value: Decimal
    recorded_at: datetime


class WeightGoalLike(Protocol):
    """Structural contract for weight goal rows returned by a store."""
    value: Decimal
    recorded_at: datetime


class RecordStoreLike(Protocol):
    """Contract for weight entry and goal persistence, implemented by shell."""
    async def insert_entry(
        self, owner: OwnerId, value: Decimal, recorded_at: object = None,
    ) -> EntryId: ...
    async def list_entries(
        self, owner: OwnerId, page: Page,
    ) -> list[WeightEntryLike]: ...
    async def update_entry(
        self, owner: OwnerId, entry_id: EntryId,
        value: Decimal | None = None, recorded_at: object = None,
    ) -> int: ...
    async def delete_entry(self, owner: OwnerId, entry_id: EntryId) -> int: ...
    async def upsert_goal(
        self, owner: OwnerId, value: Decimal, recorded_at: object = None,
    ) -> bool: ...
    async def get_goal(self, owner: OwnerId) -> WeightGoalLike | None: ...
    async def delete_goal(self, owner: OwnerId) -> int: ...
