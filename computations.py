"""
Business logic and computations for TripSplit
"""
from __future__ import annotations
import logging
from typing import Dict, List

from models import EqualSplit, Expense, Member, Settlement, Trip
from utils import format_currency

logger = logging.getLogger(__name__)

EPSILON = 0.01  # smallest amount (currency units) treated as non-zero


def compute_balances(members: List[Member], expenses: List[Expense]) -> Dict[str, float]:
    """
    Compute each member's net balance.
    Returns dict mapping member id -> balance; positive is owed money, negative owes money.
    """
    balances = {m.id: 0.0 for m in members}

    for e in expenses:
        balances[e.payer_id] += e.amount
        if isinstance(e.split, EqualSplit):
            ids = e.split.participant_ids
            if not ids:
                continue
            share = e.amount / len(ids)
            for pid in ids:
                balances[pid] -= share
        else:
            for mid, share in e.split.shares.items():
                balances[mid] -= share

    for k, v in balances.items():
        if abs(v) < EPSILON:
            balances[k] = 0.0
    return balances


def minimize_settlements(balances: Dict[str, float], members: List[Member]) -> List[Settlement]:
    """
    Compute payments that settle all balances.
    Greedy matching: the largest debtor pays the largest creditor until one side is cleared.
    Ties keep the iteration order of `balances` (sorts are stable).
    """
    names = {m.id: m.name for m in members}
    debtors = [[mid, -v] for mid, v in balances.items() if v < -EPSILON]
    creditors = [[mid, v] for mid, v in balances.items() if v > EPSILON]
    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    settlements = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        x = min(debtor[1], creditor[1])
        if x > EPSILON:
            settlements.append(Settlement(names[debtor[0]], names[creditor[0]], round(x, 2)))
        debtor[1] -= x
        creditor[1] -= x
        if abs(debtor[1]) < EPSILON:
            i += 1
        if abs(creditor[1]) < EPSILON:
            j += 1

    if i < len(debtors) or j < len(creditors):
        # balances did not sum to zero
        logger.warning(
            "Unmatched balances left after settlement: %d debtor(s), %d creditor(s)",
            len(debtors) - i, len(creditors) - j,
        )
    return settlements


def apply_settlements(
    balances: Dict[str, float],
    settlements: List[Settlement],
    members: List[Member]
) -> Dict[str, float]:
    """Return balances after every settlement has been paid"""
    ids = {m.name: m.id for m in members}
    out = dict(balances)
    for s in settlements:
        out[ids[s.debtor]] += s.amount
        out[ids[s.creditor]] -= s.amount
    return out


def total_spending(expenses: List[Expense]) -> float:
    return sum(e.amount for e in expenses)


def describe_balance(amount: float, currency: str) -> str:
    """Human text for a balance, e.g. 'owes $12.50'"""
    if abs(amount) < EPSILON:
        return "is settled up"
    if amount < 0:
        return f"owes {format_currency(-amount, currency)}"
    return f"is owed {format_currency(amount, currency)}"


def expenses_newest_first(expenses: List[Expense]) -> List[Expense]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)


def is_member_in_use(trip: Trip, member_id: str) -> bool:
    """True if the member paid for or shares in any expense"""
    for e in trip.expenses:
        if e.payer_id == member_id:
            return True
        if isinstance(e.split, EqualSplit):
            if member_id in e.split.participant_ids:
                return True
        elif e.split.shares.get(member_id):
            return True
    return False
