"""Pydantic Schemas — request/response models for API endpoints.

Invariants:
    - Schemas describe the HTTP contract; coercion rules live in core/

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
"""
