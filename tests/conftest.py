from __future__ import annotations
import pytest

from models import EqualSplit, Expense, Member, Trip, UnequalSplit


@pytest.fixture
def members():
    return [Member("a", "Alice"), Member("b", "Bob"), Member("c", "Carol")]


@pytest.fixture
def trip(members):
    return Trip(id="t1", name="Lisbon", currency="EUR", members=members)


@pytest.fixture
def make_expense():
    """Factory: make_expense(amount, payer, participants) or shares={...}"""
    counter = iter(range(1, 10_000))

    def factory(amount, payer_id, participant_ids=None, shares=None, date="2024-05-01", description=None):
        n = next(counter)
        split = UnequalSplit(shares) if shares is not None else EqualSplit(list(participant_ids or []))
        return Expense(
            id=f"e{n}",
            description=description or f"expense {n}",
            amount=amount,
            payer_id=payer_id,
            split=split,
            category="Food",
            date=date,
        )

    return factory
