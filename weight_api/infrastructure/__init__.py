"""Infrastructure Layer — database pool, token verification, logging.

Invariants:
    - Infrastructure never imports from api/ or services/
    - All external calls bounded by timeouts and mapped to typed errors

Design Decisions:
    - Long-lived resources are classes constructed in the lifespan, not module globals
"""
