"""Weight Tracker API Package — per-user weight entries and goals behind bearer auth.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
