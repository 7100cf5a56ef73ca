"""Record Store — ownership scoping, partial updates, paging and goal upsert on SQLite.

Invariants under test:
    - insert → list returns the entry for its owner only
    - update/delete by a non-owner affect zero rows and leave the row intact
    - update with no fields returns 0; timestamp-only update keeps value
    - limit/offset window and newest-first ordering
    - goal upsert keeps exactly one row per owner and replaces in place
    - SQLAlchemy failures surface as DatabaseError, bad timestamps as InvalidTimestampError
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from weight_api.core.domain_types import EntryChanges, OwnerId, Page
from weight_api.core.errors import DatabaseError, InvalidTimestampError
from weight_api.models.weight_goal import WeightGoal
from weight_api.services.record_store import (
    build_entry_update, build_goal_upsert,
)

ALICE = OwnerId("alice-sub")
BOB = OwnerId("bob-sub")


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    """SQLite returns naive datetimes; stored values are UTC."""
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


# ─── Entries ─────────────────────────────────────────────────────

async def test_insert_then_list_is_owner_scoped(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))

    mine = await store.list_entries(ALICE, Page())
    theirs = await store.list_entries(BOB, Page())

    assert [(e.id, e.value) for e in mine] == [(entry_id, Decimal("72.50"))]
    assert theirs == []


async def test_insert_ids_increase(store):
    first = await store.insert_entry(ALICE, Decimal("70.00"))
    second = await store.insert_entry(BOB, Decimal("80.00"))
    assert 0 < first < second


async def test_insert_defaults_recorded_at_to_now(store):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    await store.insert_entry(ALICE, Decimal("70.00"))
    [entry] = await store.list_entries(ALICE, Page())
    assert _as_utc(entry.recorded_at) >= before
    assert entry.recorded_at.microsecond == 0


async def test_timestamp_round_trip_second_precision(store):
    await store.insert_entry(ALICE, Decimal("70.00"), "2024-01-15T10:30:00Z")
    [entry] = await store.list_entries(ALICE, Page())
    assert _as_utc(entry.recorded_at) == _utc(2024, 1, 15, 10, 30, 0)


async def test_insert_rejects_bad_timestamp_without_writing(store):
    with pytest.raises(InvalidTimestampError):
        await store.insert_entry(ALICE, Decimal("70.00"), "not-a-date")
    assert await store.list_entries(ALICE, Page()) == []


async def test_list_newest_recorded_first(store):
    old = await store.insert_entry(ALICE, Decimal("75.00"), "2024-01-01T08:00:00Z")
    new = await store.insert_entry(ALICE, Decimal("74.00"), "2024-03-01T08:00:00Z")
    mid = await store.insert_entry(ALICE, Decimal("74.50"), "2024-02-01T08:00:00Z")

    entries = await store.list_entries(ALICE, Page())
    assert [e.id for e in entries] == [new, mid, old]


async def test_list_same_timestamp_newest_id_first(store):
    first = await store.insert_entry(ALICE, Decimal("75.00"), "2024-01-01T08:00:00Z")
    second = await store.insert_entry(ALICE, Decimal("76.00"), "2024-01-01T08:00:00Z")
    entries = await store.list_entries(ALICE, Page())
    assert [e.id for e in entries] == [second, first]


async def test_list_limit_and_offset(store):
    ids = [
        await store.insert_entry(ALICE, Decimal("70.00"), f"2024-01-0{day}T00:00:00Z")
        for day in range(1, 6)
    ]
    page = await store.list_entries(ALICE, Page(limit=2, offset=1))
    assert [e.id for e in page] == [ids[3], ids[2]]


async def test_update_value_by_owner(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    assert await store.update_entry(ALICE, entry_id, value=Decimal("71.25")) == 1
    [entry] = await store.list_entries(ALICE, Page())
    assert entry.value == Decimal("71.25")


async def test_update_to_zero_is_applied(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    assert await store.update_entry(ALICE, entry_id, value=Decimal("0.00")) == 1
    [entry] = await store.list_entries(ALICE, Page())
    assert entry.value == Decimal("0.00")


async def test_update_timestamp_only_keeps_value(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"), "2024-01-01T00:00:00Z")
    updated = await store.update_entry(
        ALICE, entry_id, recorded_at="2024-02-02T12:00:00+01:00",
    )
    [entry] = await store.list_entries(ALICE, Page())
    assert updated == 1
    assert entry.value == Decimal("72.50")
    assert _as_utc(entry.recorded_at) == _utc(2024, 2, 2, 11, 0, 0)


async def test_update_with_no_fields_is_noop(store, monkeypatch):
    async def _boom(*args, **kwargs):
        raise AssertionError("storage must not be touched")

    monkeypatch.setattr(store.db, "execute", _boom)
    assert await store.update_entry(ALICE, 1) == 0


async def test_update_rejects_bad_timestamp(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    with pytest.raises(InvalidTimestampError):
        await store.update_entry(ALICE, entry_id, recorded_at="31/12/2024")


async def test_update_by_non_owner_affects_nothing(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    assert await store.update_entry(BOB, entry_id, value=Decimal("50.00")) == 0
    [entry] = await store.list_entries(ALICE, Page())
    assert entry.value == Decimal("72.50")


async def test_update_missing_id_affects_nothing(store):
    assert await store.update_entry(ALICE, 999, value=Decimal("50.00")) == 0


async def test_delete_by_owner(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    assert await store.delete_entry(ALICE, entry_id) == 1
    assert await store.list_entries(ALICE, Page()) == []
    assert await store.delete_entry(ALICE, entry_id) == 0


async def test_delete_by_non_owner_affects_nothing(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    assert await store.delete_entry(BOB, entry_id) == 0
    assert len(await store.list_entries(ALICE, Page())) == 1


# ─── Goal ────────────────────────────────────────────────────────

async def test_goal_absent_is_none(store):
    assert await store.get_goal(ALICE) is None


async def test_goal_upsert_creates_then_replaces(store):
    created = await store.upsert_goal(ALICE, Decimal("68.00"), "2024-01-01T00:00:00Z")
    replaced = await store.upsert_goal(ALICE, Decimal("65.50"), "2024-06-01T00:00:00Z")

    goal = await store.get_goal(ALICE)
    count = await store.db.scalar(
        select(func.count()).select_from(WeightGoal).where(WeightGoal.owner == ALICE),
    )
    assert created is True
    assert replaced is False
    assert count == 1
    assert goal.value == Decimal("65.50")
    assert _as_utc(goal.recorded_at) == _utc(2024, 6, 1, 0, 0, 0)


async def test_goal_upsert_without_timestamp_refreshes_it(store):
    await store.upsert_goal(ALICE, Decimal("68.00"), "2020-01-01T00:00:00Z")
    await store.upsert_goal(ALICE, Decimal("67.00"))
    goal = await store.get_goal(ALICE)
    assert _as_utc(goal.recorded_at).year >= 2025


async def test_goals_are_per_owner(store):
    await store.upsert_goal(ALICE, Decimal("68.00"))
    await store.upsert_goal(BOB, Decimal("90.00"))
    assert (await store.get_goal(ALICE)).value == Decimal("68.00")
    assert (await store.get_goal(BOB)).value == Decimal("90.00")


async def test_goal_upsert_rejects_bad_timestamp(store):
    with pytest.raises(InvalidTimestampError):
        await store.upsert_goal(ALICE, Decimal("68.00"), "soon")
    assert await store.get_goal(ALICE) is None


async def test_goal_delete(store):
    await store.upsert_goal(ALICE, Decimal("68.00"))
    assert await store.delete_goal(BOB) == 0
    assert await store.delete_goal(ALICE) == 1
    assert await store.get_goal(ALICE) is None
    assert await store.delete_goal(ALICE) == 0


# ─── Statement builders ──────────────────────────────────────────

def test_entry_update_sets_only_present_fields():
    stmt = build_entry_update(ALICE, 7, EntryChanges(value=Decimal("70.00")))
    sql = str(stmt.compile())
    assert "SET value=" in sql
    assert "recorded_at" not in sql
    assert "user_sub" in sql


@pytest.mark.parametrize(
    "dialect_name,fragment",
    [("postgresql", "ON CONFLICT"), ("sqlite", "ON CONFLICT"),
     ("mysql", "ON DUPLICATE KEY UPDATE")],
)
def test_goal_upsert_per_dialect(dialect_name, fragment):
    from sqlalchemy.dialects import mysql, postgresql, sqlite

    dialects = {
        "postgresql": postgresql.dialect(),
        "sqlite": sqlite.dialect(),
        "mysql": mysql.dialect(),
    }
    stmt = build_goal_upsert(
        dialect_name, ALICE, Decimal("68.00"), _utc(2024, 1, 1),
    )
    assert fragment in str(stmt.compile(dialect=dialects[dialect_name]))


def test_goal_upsert_unknown_dialect():
    with pytest.raises(NotImplementedError):
        build_goal_upsert("oracle", ALICE, Decimal("68.00"), _utc(2024, 1, 1))


# ─── Failure mapping ─────────────────────────────────────────────

async def test_sqlalchemy_failure_becomes_database_error(store, monkeypatch):
    async def _fail(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(store.db, "execute", _fail)
    with pytest.raises(DatabaseError) as exc:
        await store.list_entries(ALICE, Page())
    assert exc.value.operation == "query"
    assert exc.value.to_response() == {"ok": False, "error": "DB query failed"}


async def test_blank_or_zero_timestamp_stamps_now(store):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    await store.insert_entry(ALICE, Decimal("70.00"), "")
    await store.insert_entry(ALICE, Decimal("71.00"), 0)
    await store.upsert_goal(ALICE, Decimal("65.00"), "  ")

    entries = await store.list_entries(ALICE, Page())
    goal = await store.get_goal(ALICE)
    assert all(_as_utc(e.recorded_at) >= before for e in entries)
    assert _as_utc(goal.recorded_at) >= before


async def test_update_rejects_blank_timestamp(store):
    entry_id = await store.insert_entry(ALICE, Decimal("72.50"))
    with pytest.raises(InvalidTimestampError):
        await store.update_entry(ALICE, entry_id, recorded_at="")
