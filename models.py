"""
Data models for TripSplit application
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass
class Member:
    """Person taking part in a trip"""
    id: str
    name: str


@dataclass
class EqualSplit:
    """Cost divided evenly among the listed members"""
    participant_ids: List[str]


@dataclass
class UnequalSplit:
    """Cost divided by explicit per-member amounts"""
    shares: Dict[str, float]  # member id -> amount owed


Split = Union[EqualSplit, UnequalSplit]


@dataclass
class Expense:
    """Single expense paid by one member"""
    id: str
    description: str
    amount: float
    payer_id: str
    split: Split
    category: str = ""
    date: str = ""  # YYYY-MM-DD

    @property
    def split_type(self) -> str:
        return "equal" if isinstance(self.split, EqualSplit) else "unequal"


@dataclass
class Trip:
    """Group of members sharing expenses in one currency"""
    id: str
    name: str
    currency: str
    members: List[Member] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)


@dataclass
class Settlement:
    """Suggested payment from a debtor to a creditor (member names)"""
    debtor: str
    creditor: str
    amount: float


@dataclass
class AppState:
    """Everything the application persists"""
    trips: List[Trip] = field(default_factory=list)
    active_trip_id: Optional[str] = None
    theme: str = "light"


@dataclass
class ExpenseDraft:
    """Partially filled expense, e.g. from free-text parsing"""
    description: str = ""
    amount: Optional[float] = None
    category: str = ""
    date: str = ""
    payer_id: Optional[str] = None
    participant_ids: List[str] = field(default_factory=list)
