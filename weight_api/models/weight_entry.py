"""WeightEntry ORM — one body-weight measurement owned by one subject.

Invariants:
    - id is an autoincrement BIGINT primary key, assigned on insert
    - user_sub is the verified token subject; set at creation, never updated
    - value is DECIMAL(6,2), non-nullable
    - recorded_at is UTC at second precision (coerced before it reaches the ORM)

Design Decisions:
    - Composite index (user_sub, recorded_at): every read is "my entries, newest first",
      served by a backward index scan
    - Python-side default for recorded_at: same second-precision rule as client-supplied
      timestamps, regardless of the server clock's resolution
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from weight_api.db.base import Base


def utc_now_seconds() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class WeightEntry(Base):
    """A single weight measurement."""
    __tablename__ = "weights"
    __table_args__ = (
        Index("idx_user_time", "user_sub", "recorded_at"),
    )

    # SQLite only autoincrements INTEGER PRIMARY KEY
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True, autoincrement=True,
    )
    owner: Mapped[str] = mapped_column("user_sub", String(255), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now_seconds,
    )
