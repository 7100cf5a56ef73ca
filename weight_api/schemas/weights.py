"""Weight Schemas — request bodies and response items for /weights and /goal.

Invariants:
    - Request fields are typed Any: coercion and the exact 400 messages live in
      core/coerce_inputs.py, not in Pydantic error text
    - Presence is read from model_fields_set, so an explicit 0 is "present"
    - Responses serialize value as a 2-decimal string and recorded_at as UTC ISO-8601
    - GoalItem echoes the owner as user_sub, read from the ORM "owner" attribute

Design Decisions:
    - recorded_at wins over its short alias at when both are sent
    - extra="ignore": unknown body keys never fail a request
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimestampedBody(BaseModel):
    """Body carrying an optional timestamp under recorded_at or at."""
    model_config = ConfigDict(extra="ignore")

    recorded_at: Any = None
    at: Any = None

    @property
    def has_timestamp(self) -> bool:
        return bool({"recorded_at", "at"} & self.model_fields_set)

    @property
    def timestamp_input(self) -> Any:
        """Raw timestamp, recorded_at first; None when neither was usable."""
        if self.recorded_at is not None:
            return self.recorded_at
        return self.at


class WeightCreate(TimestampedBody):
    value: Any = None


class WeightUpdate(TimestampedBody):
    value: Any = None

    @property
    def has_value(self) -> bool:
        return "value" in self.model_fields_set


class GoalUpsert(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Any = None
    at: Any = None


class EchoInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    input: Any = None


class _Recorded(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: Decimal
    recorded_at: datetime

    @field_validator("recorded_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """SQLite hands back naive datetimes; stored values are always UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class WeightItem(_Recorded):
    id: int


class GoalItem(_Recorded):
    user_sub: str = Field(validation_alias="owner")
