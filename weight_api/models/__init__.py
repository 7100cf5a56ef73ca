"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every table carries user_sub; all rows are scoped by owner

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all runs
"""

from weight_api.models.weight_entry import WeightEntry  # noqa: F401
from weight_api.models.weight_goal import WeightGoal  # noqa: F401
