"""Record Store — ownership-scoped persistence for weight entries and goals.

Invariants:
    - Every statement filters by owner (user_sub); a non-owner's id matches zero rows
    - Timestamps are coerced (UTC, second precision) BEFORE any statement runs;
      InvalidTimestampError never reaches the database
    - insert_entry and upsert_goal stamp "now" when the timestamp is null, blank or 0
    - update_entry with no fields returns 0 without touching the session
    - Goal upsert is ONE INSERT ... ON CONFLICT statement: no intermediate state
    - SQLAlchemy failures are logged in full and re-raised as DatabaseError(operation)

Design Decisions:
    - Store wraps a request-scoped AsyncSession; the pool lives in DatabaseSessionManager
    - Each write commits on its own: single-row atomicity, no multi-row transactions
    - Dialect-specific upsert (postgresql/sqlite ON CONFLICT, mysql ON DUPLICATE KEY)
      chosen from the session's bind (ADR: production Postgres, SQLite in tests)
    - upsert_goal reports inserted-vs-replaced from a read inside the same transaction;
      advisory only, no caller branches on it
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator

from sqlalchemy import Delete, Insert, Update, delete, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from weight_api.core.coerce_inputs import coerce_timestamp, timestamp_supplied
from weight_api.core.domain_types import EntryChanges, EntryId, OwnerId, Page
from weight_api.core.errors import DatabaseError, ErrorContext
from weight_api.models.weight_entry import WeightEntry, utc_now_seconds
from weight_api.models.weight_goal import WeightGoal

logger = logging.getLogger(__name__)


def build_entry_update(
    owner: OwnerId, entry_id: EntryId, changes: EntryChanges,
) -> Update:
    """Single parameterized UPDATE for the present fields, scoped by (id, owner)."""
    return (
        update(WeightEntry)
        .where(WeightEntry.id == entry_id, WeightEntry.owner == owner)
        .values(**changes.as_values())
        .execution_options(synchronize_session=False)
    )


def build_goal_upsert(
    dialect_name: str, owner: OwnerId, value: Decimal, recorded_at,
) -> Insert:
    """INSERT the goal, or replace value + recorded_at when the owner has one."""
    table = WeightGoal.__table__
    row = {"user_sub": owner, "value": value, "recorded_at": recorded_at}

    if dialect_name in ("postgresql", "sqlite"):
        dialect = postgresql if dialect_name == "postgresql" else sqlite
        stmt = dialect.insert(table).values(**row)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.user_sub],
            set_={
                "value": stmt.excluded.value,
                "recorded_at": stmt.excluded.recorded_at,
            },
        )
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**row)
        return stmt.on_duplicate_key_update(
            value=stmt.inserted.value,
            recorded_at=stmt.inserted.recorded_at,
        )
    raise NotImplementedError(f"No goal upsert for dialect {dialect_name!r}")


class RecordStore:
    """Weight entries and goals for one request's AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Weight entries ──────────────────────────────────────────

    async def insert_entry(
        self, owner: OwnerId, value: Decimal, recorded_at: object = None,
    ) -> EntryId:
        """Insert one entry; recorded_at defaults to now. Returns the new id."""
        when = (
            coerce_timestamp(recorded_at) if timestamp_supplied(recorded_at)
            else utc_now_seconds()
        )
        async with self._guard("insert", owner):
            entry = WeightEntry(owner=owner, value=value, recorded_at=when)
            self.db.add(entry)
            await self.db.commit()
            return EntryId(entry.id)

    async def list_entries(
        self, owner: OwnerId, page: Page,
    ) -> list[WeightEntry]:
        """Owner's entries, newest recorded_at first (ties: newest id first)."""
        async with self._guard("query", owner):
            result = await self.db.execute(
                select(WeightEntry)
                .where(WeightEntry.owner == owner)
                .order_by(WeightEntry.recorded_at.desc(), WeightEntry.id.desc())
                .limit(page.limit)
                .offset(page.offset)
                .execution_options(populate_existing=True),
            )
            return list(result.scalars().all())

    async def update_entry(
        self,
        owner: OwnerId,
        entry_id: EntryId,
        value: Decimal | None = None,
        recorded_at: object = None,
    ) -> int:
        """Partial update of present fields. Returns rows affected (0 or 1)."""
        changes = EntryChanges(
            value=value,
            recorded_at=(
                coerce_timestamp(recorded_at) if recorded_at is not None else None
            ),
        )
        if changes.is_empty:
            return 0

        async with self._guard("update", owner, entry_id):
            result = await self.db.execute(
                build_entry_update(owner, entry_id, changes),
            )
            await self.db.commit()
            return result.rowcount

    async def delete_entry(self, owner: OwnerId, entry_id: EntryId) -> int:
        """Delete one entry if the owner matches. Returns rows affected (0 or 1)."""
        stmt: Delete = delete(WeightEntry).where(
            WeightEntry.id == entry_id, WeightEntry.owner == owner,
        ).execution_options(synchronize_session=False)
        async with self._guard("delete", owner, entry_id):
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount

    # ─── Weight goal ─────────────────────────────────────────────

    async def upsert_goal(
        self, owner: OwnerId, value: Decimal, recorded_at: object = None,
    ) -> bool:
        """Create or replace the owner's goal. True when a row was inserted."""
        when = (
            coerce_timestamp(recorded_at) if timestamp_supplied(recorded_at)
            else utc_now_seconds()
        )
        async with self._guard("upsert", owner):
            existing = await self.db.scalar(
                select(WeightGoal.owner).where(WeightGoal.owner == owner),
            )
            dialect_name = self.db.get_bind().dialect.name
            await self.db.execute(
                build_goal_upsert(dialect_name, owner, value, when),
            )
            await self.db.commit()
            return existing is None

    async def get_goal(self, owner: OwnerId) -> WeightGoal | None:
        async with self._guard("query", owner):
            result = await self.db.execute(
                select(WeightGoal)
                .where(WeightGoal.owner == owner)
                .execution_options(populate_existing=True),
            )
            return result.scalar_one_or_none()

    async def delete_goal(self, owner: OwnerId) -> int:
        async with self._guard("delete", owner):
            result = await self.db.execute(
                delete(WeightGoal)
                .where(WeightGoal.owner == owner)
                .execution_options(synchronize_session=False),
            )
            await self.db.commit()
            return result.rowcount

    # ─── Error mapping ───────────────────────────────────────────

    @asynccontextmanager
    async def _guard(
        self, operation: str, owner: OwnerId, entry_id: EntryId | None = None,
    ) -> AsyncIterator[None]:
        """Roll back and map SQLAlchemy failures to DatabaseError(operation)."""
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"DB {operation} failed: {e}",
                extra={"operation": operation, "entry_id": entry_id},
                exc_info=True,
            )
            raise DatabaseError(
                operation,
                ErrorContext(subject=owner, entry_id=entry_id),
            ) from e
