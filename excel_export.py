"""
Excel export functionality for TripSplit
"""
from __future__ import annotations
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import EqualSplit, Trip
from computations import (
    compute_balances,
    describe_balance,
    expenses_newest_first,
    minimize_settlements,
    total_spending,
)

logger = logging.getLogger(__name__)


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_format(ws, col, first_row=2):
    for r in range(first_row, ws.max_row + 1):
        ws.cell(r, col).number_format = "0.00"


def export_excel(trip: Trip, filepath: str) -> None:
    """
    Export trip to Excel file with sheets:
    - Expenses (newest first, with a total row)
    - Balances
    - Settlements
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    names = {m.id: m.name for m in trip.members}

    ws = wb.create_sheet("Expenses")
    ws.append(["Date", "Description", "Category", f"Amount ({trip.currency})", "Paid by", "Split", "Shared by"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    expenses = expenses_newest_first(trip.expenses)
    for e in expenses:
        if isinstance(e.split, EqualSplit):
            shared = ", ".join(names.get(pid, pid) for pid in e.split.participant_ids)
        else:
            shared = ", ".join(f"{names.get(mid, mid)}: {v:.2f}" for mid, v in e.split.shares.items())
        ws.append([e.date, e.description, e.category, e.amount, names.get(e.payer_id, ""), e.split_type, shared])
    if expenses:
        ws.append(["TOTAL", "", "", f"=SUM(D2:D{ws.max_row})"])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
    _money_format(ws, 4)
    _autosize_columns(ws)

    ws = wb.create_sheet("Balances")
    ws.append(["Member", "Balance", "Status"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    balances = compute_balances(trip.members, trip.expenses)
    for m in trip.members:
        b = balances[m.id]
        ws.append([m.name, b, describe_balance(b, trip.currency)])
    ws.append(["Total group spending", total_spending(trip.expenses)])
    ws.cell(ws.max_row, 1).font = Font(bold=True)
    _money_format(ws, 2)
    _autosize_columns(ws)

    ws = wb.create_sheet("Settlements")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    settlements = minimize_settlements(balances, trip.members)
    for s in settlements:
        ws.append([s.debtor, s.creditor, s.amount])
    if not settlements:
        ws.append(["All debts are settled!"])
    _money_format(ws, 3)
    _autosize_columns(ws)

    wb.save(filepath)
    logger.info("Exported Excel report for %r to %s", trip.name, filepath)
