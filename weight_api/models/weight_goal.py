"""WeightGoal ORM — the single target weight of one subject.

Invariants:
    - user_sub is the primary key: at most one goal row per owner
    - value is DECIMAL(6,2), non-nullable
    - recorded_at is refreshed on every write (insert or replace)

Design Decisions:
    - Owner as primary key instead of surrogate id + unique constraint: the upsert
      conflict target is the key itself (ADR: one goal per user is an invariant)
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from weight_api.db.base import Base
from weight_api.models.weight_entry import utc_now_seconds


class WeightGoal(Base):
    """A user's designated weight goal."""
    __tablename__ = "weight_goals"

    owner: Mapped[str] = mapped_column(
        "user_sub", String(255), primary_key=True,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=utc_now_seconds, onupdate=utc_now_seconds,
    )
