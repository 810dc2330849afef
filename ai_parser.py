"""
Natural-language expense parsing for TripSplit.

Sends a free-text description ("Bob paid 42 for pizza with Alice and Carol") to an
OpenAI-compatible chat-completions endpoint and turns the JSON reply into an
ExpenseDraft. The draft only pre-fills the expense dialog; it is validated like any
other input before it reaches the trip.
"""
from __future__ import annotations
import json
import logging
import re
from typing import Optional

import requests

from config import AiSettings
from models import ExpenseDraft, Trip
from trips import CATEGORIES
from utils import parse_date, safe_float, today_str

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class AiParseError(RuntimeError):
    """Text could not be turned into an expense draft"""


def build_prompt(text: str, trip: Trip, today: str) -> str:
    names = ", ".join(m.name for m in trip.members)
    return (
        "Extract one expense from the text below and answer with a single JSON object "
        "with keys: description (string), amount (number), category (one of "
        f"{', '.join(CATEGORIES)}), date (YYYY-MM-DD, default {today}), payer (member name), "
        "participants (list of member names sharing the cost, all members if not stated).\n"
        f"Members: {names}\n"
        f"Currency: {trip.currency}\n"
        f"Text: {text}"
    )


def extract_json(content: str) -> dict:
    """Parse the model reply, which may be wrapped in a ```json fence"""
    m = _FENCE_RE.search(content)
    raw = m.group(1) if m else content
    try:
        data = json.loads(raw.strip())
    except ValueError:
        raise AiParseError("The reply was not valid JSON.") from None
    if not isinstance(data, dict):
        raise AiParseError("The reply was not a JSON object.")
    return data


def draft_from_reply(data: dict, trip: Trip, today: str) -> ExpenseDraft:
    """Map names in the reply to member ids; unknown names are dropped"""
    ids = {m.name.casefold(): m.id for m in trip.members}

    def lookup(name) -> Optional[str]:
        if not isinstance(name, str):
            return None
        return ids.get(name.strip().casefold())

    amount = safe_float(data.get("amount"), None)
    if amount is not None and amount <= 0:
        amount = None

    date = str(data.get("date") or "")
    try:
        parse_date(date)
    except ValueError:
        date = today

    participants = []
    for n in data.get("participants") or []:
        pid = lookup(n)
        if pid and pid not in participants:
            participants.append(pid)

    category = str(data.get("category") or "")
    return ExpenseDraft(
        description=str(data.get("description") or "").strip(),
        amount=amount,
        category=category if category in CATEGORIES else ("Other" if category else ""),
        date=date,
        payer_id=lookup(data.get("payer")),
        participant_ids=participants or [m.id for m in trip.members],
    )


def parse_expense_text(
    text: str,
    trip: Trip,
    settings: AiSettings,
    today: Optional[str] = None
) -> ExpenseDraft:
    """Ask the text-generation service to turn free text into an ExpenseDraft"""
    if not settings.enabled:
        raise AiParseError("AI parsing is not configured.")
    if not text.strip():
        raise AiParseError("Nothing to parse.")
    today = today or today_str()

    payload = {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": "You turn expense notes into JSON. Reply with JSON only."},
            {"role": "user", "content": build_prompt(text, trip, today)},
        ],
        "temperature": 0,
    }
    headers = {"Authorization": f"Bearer {settings.api_key}"}

    try:
        response = requests.post(settings.api_url, json=payload, headers=headers, timeout=settings.timeout)
        response.raise_for_status()
        content = response.json()["choices"][0]["message"]["content"]
    except requests.RequestException as ex:
        logger.warning("AI parse request failed: %s", ex)
        raise AiParseError(f"Request failed: {ex}") from ex
    except (KeyError, IndexError, TypeError, ValueError):
        raise AiParseError("Unexpected response from the AI service.") from None

    draft = draft_from_reply(extract_json(content), trip, today)
    logger.info("Parsed expense draft %r (%s)", draft.description, draft.amount)
    return draft
