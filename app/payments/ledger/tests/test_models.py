"""
Tests for ledger models.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError

from payments.ledger.models import EntryType, LedgerEntry
from payments.tests.factories import UserAccountFactory


@pytest.fixture
def user(db):
    return UserAccountFactory(id="owner_1")


def make_entry(user, **overrides):
    values = {
        "user": user,
        "amount": Decimal("19.50"),
        "balance_after": Decimal("19.50"),
        "entry_type": EntryType.SETTLEMENT_CREDIT,
        "idempotency_key": "settlement:rental_1",
    }
    values.update(overrides)
    return LedgerEntry.objects.create(**values)


class TestLedgerEntry:
    """Tests for LedgerEntry constraints."""

    def test_create_entry(self, user):
        entry = make_entry(user, reference_type="rental", reference_id="rental_1")

        assert entry.id is not None
        assert entry.created_at is not None
        assert str(entry) == "Settlement Credit: 19.50 (owner_1)"

    def test_idempotency_key_is_unique(self, user):
        make_entry(user)

        with pytest.raises(IntegrityError):
            make_entry(user, amount=Decimal("1.00"))

    def test_zero_amount_rejected(self, user):
        with pytest.raises(IntegrityError):
            make_entry(user, amount=Decimal("0.00"), idempotency_key="zero")

    def test_entries_ordered_newest_first(self, user):
        first = make_entry(user, idempotency_key="a")
        second = make_entry(user, idempotency_key="b")

        keys = list(LedgerEntry.objects.filter(user=user).values_list("id", flat=True))

        assert set(keys) == {first.id, second.id}
        assert LedgerEntry._meta.ordering == ["-created_at"]
