"""
Configuration and data loading/saving for TripSplit
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from models import AppState, EqualSplit, Expense, Member, Trip, UnequalSplit
from trips import validate_trip
from utils import app_dir, new_id

logger = logging.getLogger(__name__)

STATE_FILE = "tripsplit_state_v2.json"
SETTINGS_FILE = "settings.json"


@dataclass
class AiSettings:
    """Connection settings for the text-generation service"""
    api_url: str = ""
    api_key: str = ""
    model: str = "gpt-4o-mini"
    timeout: float = 20.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_url and self.api_key)


def default_state_path() -> str:
    return os.path.join(app_dir(), STATE_FILE)


def expense_to_dict(e: Expense) -> dict:
    """Convert Expense to the stored JSON shape"""
    d = {
        "id": e.id,
        "description": e.description,
        "amount": e.amount,
        "date": e.date,
        "payerId": e.payer_id,
        "category": e.category,
        "splitType": e.split_type,
    }
    if isinstance(e.split, EqualSplit):
        d["participantIds"] = list(e.split.participant_ids)
    else:
        d["shares"] = dict(e.split.shares)
    return d


def dict_to_expense(d: dict) -> Expense:
    """Convert stored JSON to Expense"""
    split_type = d.get("splitType", "equal")
    if split_type == "equal":
        split = EqualSplit(list(d.get("participantIds") or []))
    elif split_type == "unequal":
        split = UnequalSplit({k: float(v) for k, v in (d.get("shares") or {}).items()})
    else:
        raise ValueError(f"Unknown splitType: {split_type!r}")

    return Expense(
        id=d["id"],
        description=d.get("description", ""),
        amount=float(d["amount"]),
        payer_id=d["payerId"],
        split=split,
        category=d.get("category", ""),
        date=d.get("date", ""),
    )


def trip_to_dict(trip: Trip) -> dict:
    return {
        "id": trip.id,
        "name": trip.name,
        "currency": trip.currency,
        "members": [{"id": m.id, "name": m.name} for m in trip.members],
        "expenses": [expense_to_dict(e) for e in trip.expenses],
    }


def dict_to_trip(d: dict) -> Trip:
    return Trip(
        id=d["id"],
        name=d.get("name", ""),
        currency=d.get("currency", ""),
        members=[Member(m["id"], m["name"]) for m in d.get("members", [])],
        expenses=[dict_to_expense(e) for e in d.get("expenses", [])],
    )


def state_to_dict(state: AppState) -> dict:
    """Convert AppState to dictionary for JSON serialization"""
    return {
        "trips": [trip_to_dict(t) for t in state.trips],
        "activeTripId": state.active_trip_id,
        "theme": state.theme,
    }


def dict_to_state(d: dict) -> AppState:
    """Convert dictionary from JSON to AppState"""
    return AppState(
        trips=[dict_to_trip(t) for t in d.get("trips", [])],
        active_trip_id=d.get("activeTripId"),
        theme=d.get("theme") or "light",
    )


def load_state(path: Optional[str] = None) -> AppState:
    """Load application state; a missing file gives a fresh state"""
    path = path or default_state_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("No saved state at %s, starting fresh", path)
        return AppState()
    state = dict_to_state(data)
    logger.debug("Loaded %d trip(s) from %s", len(state.trips), path)
    return state


def save_state(state: AppState, path: Optional[str] = None) -> None:
    path = path or default_state_path()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, ensure_ascii=False, indent=2)
    logger.debug("Saved %d trip(s) to %s", len(state.trips), path)


def export_trip_json(trip: Trip, path: str) -> None:
    """Write a single trip to a JSON file"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(trip_to_dict(trip), f, ensure_ascii=False, indent=2)
    logger.info("Exported trip %r to %s", trip.name, path)


def import_trip_json(path: str) -> Trip:
    """Read a single trip from a JSON file; raises TripError for invalid expenses"""
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    return validate_trip(dict_to_trip(d))


def add_imported_trip(state: AppState, trip: Trip) -> Trip:
    """Add an imported trip, giving it a fresh id if the id is already taken"""
    if any(t.id == trip.id for t in state.trips):
        trip.id = new_id()
    state.trips.append(trip)
    logger.info("Imported trip %r with %d expense(s)", trip.name, len(trip.expenses))
    return trip


def load_ai_settings(path: Optional[str] = None) -> AiSettings:
    """
    Load AI settings from settings.json, then apply environment overrides:
    TRIPSPLIT_AI_URL, TRIPSPLIT_AI_KEY, TRIPSPLIT_AI_MODEL.
    """
    path = path or os.path.join(app_dir(), SETTINGS_FILE)
    data = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f).get("ai", {})
    except FileNotFoundError:
        pass

    settings = AiSettings(
        api_url=data.get("api_url", ""),
        api_key=data.get("api_key", ""),
        model=data.get("model") or AiSettings.model,
        timeout=float(data.get("timeout", AiSettings.timeout)),
    )
    settings.api_url = os.environ.get("TRIPSPLIT_AI_URL", settings.api_url)
    settings.api_key = os.environ.get("TRIPSPLIT_AI_KEY", settings.api_key)
    settings.model = os.environ.get("TRIPSPLIT_AI_MODEL", settings.model)
    return settings
