"""
Trip, member and expense operations for TripSplit.
These mutate the in-memory AppState; callers persist it afterwards.
"""
from __future__ import annotations
import logging
import math
from typing import Dict, List, Optional

from models import AppState, EqualSplit, Expense, Member, Trip, UnequalSplit
from computations import (
    EPSILON,
    compute_balances,
    is_member_in_use,
    minimize_settlements,
    total_spending,
)
from utils import new_id, parse_date

logger = logging.getLogger(__name__)

CATEGORIES = ["Food", "Transport", "Accommodation", "Activities", "Shopping", "Other"]


class TripError(ValueError):
    """Invalid operation on a trip; message is shown to the user"""


class UnknownTripError(TripError):
    pass


class UnknownMemberError(TripError):
    pass


class DuplicateMemberError(TripError):
    pass


class MemberInUseError(TripError):
    pass


class ExpenseValidationError(TripError):
    pass


# ---------- Trips ----------
def create_trip(state: AppState, name: str, currency: str) -> Trip:
    name = (name or "").strip()
    currency = (currency or "").strip().upper()
    if not name or not currency:
        raise TripError("Group name and currency are required.")
    trip = Trip(id=new_id(), name=name, currency=currency)
    state.trips.append(trip)
    logger.info("Created trip %r (%s)", name, currency)
    return trip


def find_trip(state: AppState, trip_id: str) -> Trip:
    for t in state.trips:
        if t.id == trip_id:
            return t
    raise UnknownTripError(f"No such group: {trip_id}")


def delete_trip(state: AppState, trip_id: str) -> None:
    trip = find_trip(state, trip_id)
    state.trips = [t for t in state.trips if t.id != trip_id]
    if state.active_trip_id == trip_id:
        state.active_trip_id = None
    logger.info("Deleted trip %r", trip.name)


def open_trip(state: AppState, trip_id: str) -> Trip:
    trip = find_trip(state, trip_id)
    state.active_trip_id = trip.id
    return trip


def close_trip(state: AppState) -> None:
    state.active_trip_id = None


def active_trip(state: AppState) -> Optional[Trip]:
    """Currently open trip, or None; a stale active id is cleared"""
    if state.active_trip_id is None:
        return None
    try:
        return find_trip(state, state.active_trip_id)
    except UnknownTripError:
        state.active_trip_id = None
        return None


def toggle_theme(state: AppState) -> str:
    state.theme = "dark" if state.theme == "light" else "light"
    return state.theme


# ---------- Members ----------
def find_member(trip: Trip, member_id: str) -> Member:
    for m in trip.members:
        if m.id == member_id:
            return m
    raise UnknownMemberError(f"No such member: {member_id}")


def _check_unique(trip: Trip, name: str, exclude_id: Optional[str] = None) -> None:
    for m in trip.members:
        if m.id != exclude_id and m.name.casefold() == name.casefold():
            raise DuplicateMemberError(f"A member named '{name}' already exists.")


def add_members(trip: Trip, text: str) -> List[Member]:
    """Add one or more members from a comma-separated list of names"""
    names = [n.strip() for n in (text or "").split(",")]
    names = [n for n in names if n]
    if not names:
        raise TripError("Enter at least one name.")

    seen = set()
    for n in names:
        _check_unique(trip, n)
        if n.casefold() in seen:
            raise DuplicateMemberError(f"'{n}' is listed twice.")
        seen.add(n.casefold())

    added = [Member(new_id(), n) for n in names]
    trip.members.extend(added)
    logger.info("Added %d member(s) to %r", len(added), trip.name)
    return added


def rename_member(trip: Trip, member_id: str, new_name: str) -> Member:
    member = find_member(trip, member_id)
    new_name = (new_name or "").strip()
    if not new_name:
        raise TripError("Name cannot be empty.")
    _check_unique(trip, new_name, exclude_id=member_id)
    member.name = new_name
    return member


def delete_member(trip: Trip, member_id: str) -> None:
    member = find_member(trip, member_id)
    if is_member_in_use(trip, member_id):
        raise MemberInUseError("Cannot delete member involved in expenses.")
    trip.members = [m for m in trip.members if m.id != member_id]
    logger.info("Deleted member %r from %r", member.name, trip.name)


# ---------- Expenses ----------
def build_expense(
    trip: Trip,
    description: str,
    amount: Optional[float],
    date: str,
    payer_id: str,
    category: str,
    split_type: str,
    participant_ids: Optional[List[str]] = None,
    shares: Optional[Dict[str, float]] = None,
    expense_id: Optional[str] = None,
) -> Expense:
    """Validate form input and build an Expense"""
    if not trip.members:
        raise ExpenseValidationError("Add members first!")

    description = (description or "").strip()
    category = (category or "").strip()
    date = (date or "").strip()
    if not description or not amount or not date or not category:
        raise ExpenseValidationError("Please fill out all expense fields.")
    if not math.isfinite(amount) or amount < 0:
        raise ExpenseValidationError("Amount must be greater than zero.")
    try:
        parse_date(date)
    except ValueError:
        raise ExpenseValidationError("Date must be YYYY-MM-DD.") from None

    member_ids = {m.id for m in trip.members}
    if payer_id not in member_ids:
        raise ExpenseValidationError("Please select who paid.")

    if split_type == "equal":
        ids = list(participant_ids or [])
        if not ids:
            raise ExpenseValidationError("Select at least one participant.")
        if any(pid not in member_ids for pid in ids):
            raise ExpenseValidationError("Participants must be members of the group.")
        split = EqualSplit(ids)
    elif split_type == "unequal":
        shares = shares or {}
        if any(mid not in member_ids for mid in shares):
            raise ExpenseValidationError("Shares must belong to members of the group.")
        if any(not math.isfinite(s) or s < 0 for s in shares.values()):
            raise ExpenseValidationError("Shares cannot be negative.")
        if abs(sum(shares.values()) - amount) > EPSILON:
            raise ExpenseValidationError("The sum of shares must equal the total amount.")
        split = UnequalSplit({mid: float(s) for mid, s in shares.items() if s > 0})
    else:
        raise ExpenseValidationError(f"Unknown split type: {split_type}")

    return Expense(
        id=expense_id or new_id(),
        description=description,
        amount=float(amount),
        payer_id=payer_id,
        split=split,
        category=category,
        date=date,
    )


def validate_expense(trip: Trip, expense: Expense) -> Expense:
    """Re-run form validation on an expense that came from a file"""
    if isinstance(expense.split, EqualSplit):
        participant_ids, shares = expense.split.participant_ids, None
    else:
        participant_ids, shares = None, expense.split.shares
    try:
        return build_expense(
            trip,
            description=expense.description,
            amount=expense.amount,
            date=expense.date,
            payer_id=expense.payer_id,
            category=expense.category,
            split_type=expense.split_type,
            participant_ids=participant_ids,
            shares=shares,
            expense_id=expense.id,
        )
    except ExpenseValidationError as ex:
        raise ExpenseValidationError(f"Expense '{expense.description}': {ex}") from None


def validate_trip(trip: Trip) -> Trip:
    """Check an imported trip: unique member ids and valid expenses"""
    if len({m.id for m in trip.members}) != len(trip.members):
        raise TripError(f"Group '{trip.name}' has duplicate member ids.")
    trip.expenses = [validate_expense(trip, e) for e in trip.expenses]
    return trip


def add_expense(trip: Trip, expense: Expense) -> None:
    trip.expenses.append(expense)
    logger.info("Added expense %r (%.2f) to %r", expense.description, expense.amount, trip.name)


def update_expense(trip: Trip, expense: Expense) -> None:
    for i, e in enumerate(trip.expenses):
        if e.id == expense.id:
            trip.expenses[i] = expense
            logger.info("Updated expense %r", expense.description)
            return
    raise TripError(f"No such expense: {expense.id}")


def delete_expense(trip: Trip, expense_id: str) -> None:
    before = len(trip.expenses)
    trip.expenses = [e for e in trip.expenses if e.id != expense_id]
    if len(trip.expenses) == before:
        raise TripError(f"No such expense: {expense_id}")
    logger.info("Deleted expense %s from %r", expense_id, trip.name)


def trip_report(trip: Trip) -> dict:
    """Balances, settlements and total spending for a trip"""
    balances = compute_balances(trip.members, trip.expenses)
    return {
        "balances": balances,
        "settlements": minimize_settlements(balances, trip.members),
        "total": total_spending(trip.expenses),
    }
