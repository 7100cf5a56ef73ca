"""Domain Types — Identity construction and EntryChanges presence semantics."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from weight_api.core.domain_types import EntryChanges, Identity


def test_identity_from_claims_maps_standard_fields():
    identity = Identity.from_claims({
        "sub": "abc-123",
        "preferred_username": "sam",
        "scope": "openid profile",
        "email": "sam@example.com",
    })
    assert identity.subject == "abc-123"
    assert identity.username == "sam"
    assert identity.scope == "openid profile"
    assert identity.claims["email"] == "sam@example.com"


def test_identity_optional_claims_default_to_none():
    identity = Identity.from_claims({"sub": "abc-123"})
    assert identity.username is None
    assert identity.scope is None


def test_identity_claims_are_read_only():
    identity = Identity.from_claims({"sub": "abc-123"})
    with pytest.raises(TypeError):
        identity.claims["sub"] = "someone-else"


def test_entry_changes_empty():
    assert EntryChanges().is_empty
    assert EntryChanges().as_values() == {}


def test_entry_changes_zero_value_is_present():
    changes = EntryChanges(value=Decimal("0.00"))
    assert not changes.is_empty
    assert changes.as_values() == {"value": Decimal("0.00")}


def test_entry_changes_timestamp_only():
    when = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert EntryChanges(recorded_at=when).as_values() == {"recorded_at": when}
