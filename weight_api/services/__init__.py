"""Services Layer — the record store that runs ownership-scoped queries.

Invariants:
    - Services receive the owner from the verified identity, never from the client

Design Decisions:
    - One store class per request session (ADR: no shared mutable state between requests)
"""
