"""Input Coercion — pure validation of values, timestamps, ids and paging.

Invariants:
    - Every function is PURE: no IO, no clock reads, no DB access
    - Weight values are Decimal with exactly 2 fractional digits and fit DECIMAL(6,2)
    - Timestamps come out timezone-aware UTC with microsecond == 0
    - Paging never fails: bad input falls back to defaults, then clamps

Design Decisions:
    - Raise typed InputValidationError subclasses instead of returning error dicts:
      the global handler turns them into 400s (ADR: uniform error shape)
    - Numbers as timestamps are epoch milliseconds, matching what JavaScript and
      Android clients produce from Date.getTime()/System.currentTimeMillis()
    - Naive ISO strings are read as UTC, never as server-local time
    - On create, a blank or zero timestamp means "not given" (the row takes now);
      an update has no such default, so there it stays invalid
"""

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from weight_api.core.domain_types import (
    DEFAULT_LIMIT, DEFAULT_OFFSET, MAX_ENTRY_ID, MAX_LIMIT,
    EntryId, Page,
)
from weight_api.core.errors import (
    InvalidIdError, InvalidTimestampError, InvalidValueError,
)

VALUE_QUANTUM = Decimal("0.01")
MAX_ABS_VALUE = Decimal("10000")  # DECIMAL(6,2) tops out at 9999.99

_ENTRY_ID_PATTERN = re.compile(r"[0-9]+")


def coerce_weight_value(raw: object) -> Decimal:
    """Finite number (or numeric string) -> Decimal rounded half-up to cents."""
    if raw is None or isinstance(raw, bool):
        raise InvalidValueError()
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    elif isinstance(raw, str):
        text = raw.strip()
    else:
        raise InvalidValueError()

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidValueError() from None
    if not value.is_finite() or abs(value) >= MAX_ABS_VALUE:
        raise InvalidValueError()

    value = value.quantize(VALUE_QUANTUM, rounding=ROUND_HALF_UP)
    if abs(value) >= MAX_ABS_VALUE:
        raise InvalidValueError()
    return value


def timestamp_supplied(raw: object) -> bool:
    """False for the blanks clients send to mean "now": null, "", whitespace, 0."""
    if raw is None or raw is False:
        return False
    if isinstance(raw, str):
        return bool(raw.strip())
    if isinstance(raw, (int, float, Decimal)):
        return raw != 0
    return True


def coerce_timestamp(raw: object) -> datetime:
    """Any accepted instant -> aware UTC datetime at second precision.

    Accepts datetime objects, ISO-8601 strings ("2024-01-15T10:30:00Z",
    "2024-01-15 10:30:00+02:00", "2024-01-15") and epoch milliseconds.
    """
    try:
        moment = _parse_instant(raw)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc).replace(microsecond=0)
    except (ValueError, OverflowError, OSError):
        raise InvalidTimestampError() from None


def _parse_instant(raw: object) -> datetime:
    if raw is None or isinstance(raw, bool):
        raise ValueError("not a timestamp")
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise ValueError("non-finite epoch")
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.strip())
    raise ValueError(f"unsupported timestamp type {type(raw).__name__}")


def parse_entry_id(raw: str) -> EntryId:
    """Path segment -> positive 64-bit id, or InvalidIdError."""
    if not _ENTRY_ID_PATTERN.fullmatch(raw):
        raise InvalidIdError()
    entry_id = int(raw)
    if entry_id <= 0 or entry_id > MAX_ENTRY_ID:
        raise InvalidIdError()
    return EntryId(entry_id)


def clamp_pagination(limit: object = None, offset: object = None) -> Page:
    """Rule: limit in [1, 500] (default 100, also for 0), offset >= 0 (default 0)."""
    parsed_limit = _parse_number(limit)
    lim = int(parsed_limit) if parsed_limit else DEFAULT_LIMIT
    lim = max(1, min(MAX_LIMIT, lim))

    parsed_offset = _parse_number(offset)
    off = int(parsed_offset) if parsed_offset else DEFAULT_OFFSET
    off = max(0, min(MAX_ENTRY_ID, off))
    return Page(limit=lim, offset=off)


def _parse_number(raw: object) -> float | None:
    """Lenient numeric parse for query strings; None when unusable."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
