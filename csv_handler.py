"""
CSV export and import functionality for TripSplit
"""
from __future__ import annotations
import csv
import logging
from typing import List

from models import EqualSplit, Expense, Trip, UnequalSplit
from trips import validate_expense
from utils import new_id

logger = logging.getLogger(__name__)

COLUMNS = ['id', 'date', 'description', 'category', 'amount', 'payer', 'split_type', 'split']


def export_expenses_to_csv(trip: Trip, filepath: str) -> None:
    """
    Export a trip's expenses to CSV file
    Members are written by name; split is "name;name" (equal) or "name:amount;..." (unequal)
    """
    names = {m.id: m.name for m in trip.members}
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        for e in trip.expenses:
            if isinstance(e.split, EqualSplit):
                split_str = ';'.join(names[pid] for pid in e.split.participant_ids)
            else:
                split_str = ';'.join(f"{names[mid]}:{v}" for mid, v in e.split.shares.items())
            writer.writerow([
                e.id,
                e.date,
                e.description,
                e.category,
                e.amount,
                names[e.payer_id],
                e.split_type,
                split_str,
            ])
    logger.info("Exported %d expense(s) to %s", len(trip.expenses), filepath)


def import_expenses_from_csv(trip: Trip, filepath: str) -> List[Expense]:
    """
    Import expenses from CSV file, resolving member names against the trip.
    Returns list of validated Expense objects; raises ValueError naming the row otherwise.
    """
    ids = {m.name.casefold(): m.id for m in trip.members}
    expenses = []

    def member_id(name: str, line: int) -> str:
        try:
            return ids[name.strip().casefold()]
        except KeyError:
            raise ValueError(f"Row {line}: unknown member '{name.strip()}'") from None

    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)

        for line, row in enumerate(reader, start=2):
            split_type = (row.get('split_type') or 'equal').strip()
            raw = row.get('split') or ''
            if split_type == 'equal':
                split = EqualSplit([member_id(n, line) for n in raw.split(';') if n.strip()])
            elif split_type == 'unequal':
                shares = {}
                for pair in raw.split(';'):
                    if ':' in pair:
                        k, v = pair.rsplit(':', 1)
                        shares[member_id(k, line)] = float(v.strip())
                split = UnequalSplit(shares)
            else:
                raise ValueError(f"Row {line}: unknown split type '{split_type}'")

            expense = Expense(
                id=row.get('id') or new_id(),
                description=row['description'],
                amount=float(row['amount']),
                payer_id=member_id(row['payer'], line),
                split=split,
                category=row.get('category', ''),
                date=row.get('date', ''),
            )
            try:
                expenses.append(validate_expense(trip, expense))
            except ValueError as ex:
                raise ValueError(f"Row {line}: {ex}") from None

    logger.info("Read %d expense(s) from %s", len(expenses), filepath)
    return expenses
