"""
Dialog windows for TripSplit GUI
"""
from __future__ import annotations
from typing import Dict, List, Optional

try:
    import tkinter as tk
    from tkinter import ttk, messagebox
except ModuleNotFoundError:
    tk = None
    ttk = None
    messagebox = None

from models import EqualSplit, Expense, ExpenseDraft, Member, Trip
from trips import CATEGORIES, TripError, build_expense
from computations import EPSILON
from utils import today_str, safe_float

CUSTOM = "Custom"


class SharesEditor(tk.Toplevel):
    """Dialog for entering each member's share of an unequal split"""

    def __init__(self, master, members: List[Member], shares: Dict[str, float], total: float):
        super().__init__(master)
        self.title("Enter each person's share")
        self.resizable(False, False)
        self.members = members
        self.total = total
        self.vars: Dict[str, tk.StringVar] = {}
        self.result: Optional[Dict[str, float]] = None

        frm = ttk.Frame(self, padding=10)
        frm.grid(row=0, column=0, sticky="nsew")

        for i, m in enumerate(members):
            ttk.Label(frm, text=m.name).grid(row=i, column=0, sticky="w")
            v = tk.StringVar(value=f"{shares.get(m.id, 0.0):.2f}")
            self.vars[m.id] = v
            ttk.Entry(frm, textvariable=v, width=10).grid(row=i, column=1, sticky="w")

        self.sum_var = tk.StringVar(value="")
        self.sum_label = ttk.Label(frm, textvariable=self.sum_var)
        self.sum_label.grid(row=len(members), column=0, columnspan=2, sticky="e", pady=(6, 0))

        btns = ttk.Frame(frm)
        btns.grid(row=len(members) + 1, column=0, columnspan=2, sticky="ew", pady=(10, 0))
        ttk.Button(btns, text="Even", command=self._even).grid(row=0, column=0, padx=3)
        ttk.Button(btns, text="Clear", command=self._clear).grid(row=0, column=1, padx=3)
        ttk.Button(btns, text="OK", command=self._ok).grid(row=0, column=2, padx=12)
        ttk.Button(btns, text="Cancel", command=self._cancel).grid(row=0, column=3, padx=3)

        for v in self.vars.values():
            v.trace_add("write", lambda *_: self._update_sum())
        self._update_sum()

        self.grab_set()
        self.transient(master)

    def _read(self) -> Dict[str, float]:
        return {mid: safe_float(v.get(), 0.0) for mid, v in self.vars.items()}

    def _update_sum(self):
        """Show running total against the expense amount"""
        s = sum(self._read().values())
        self.sum_var.set(f"Total: {s:.2f} / {self.total:.2f}")
        self.sum_label.configure(foreground="green" if abs(s - self.total) < EPSILON else "red")

    def _even(self):
        n = max(1, len(self.members))
        for v in self.vars.values():
            v.set(f"{self.total / n:.2f}")

    def _clear(self):
        for v in self.vars.values():
            v.set("0")

    def _ok(self):
        self.result = {mid: s for mid, s in self._read().items() if s > 0}
        self.destroy()

    def _cancel(self):
        self.result = None
        self.destroy()


class ExpenseDialog(tk.Toplevel):
    """Dialog for adding/editing an expense"""

    def __init__(self, master, trip: Trip, expense: Optional[Expense] = None,
                 draft: Optional[ExpenseDraft] = None):
        super().__init__(master)
        self.title("Add Expense" if expense is None else "Edit Expense")
        self.resizable(False, False)
        self.trip = trip
        self.expense = expense
        self.result: Optional[Expense] = None

        self._bind_enter_to_ok()

        members = trip.members
        self.names = [m.name for m in members]
        draft = draft or ExpenseDraft()

        # EDIT > DRAFT > FALLBACK
        if expense:
            payer_id = expense.payer_id
            category = expense.category
        else:
            payer_id = draft.payer_id or (members[0].id if members else "")
            category = draft.category
        payer_name = next((m.name for m in members if m.id == payer_id), "")
        is_custom = bool(category) and category not in CATEGORIES

        self.v_date = tk.StringVar(value=expense.date if expense else (draft.date or today_str()))
        self.v_desc = tk.StringVar(value=expense.description if expense else draft.description)
        amount = expense.amount if expense else draft.amount
        self.v_amount = tk.StringVar(value=f"{amount:.2f}" if amount else "")
        self.v_payer = tk.StringVar(value=payer_name)
        self.v_category = tk.StringVar(value=CUSTOM if is_custom else category)
        self.v_custom = tk.StringVar(value=category if is_custom else "")
        self.v_split = tk.StringVar(value=expense.split_type if expense else "equal")

        if expense and isinstance(expense.split, EqualSplit):
            checked = set(expense.split.participant_ids)
        elif expense:
            checked = {m.id for m in members}
        else:
            checked = set(draft.participant_ids or [m.id for m in members])
        self.shares: Dict[str, float] = (
            dict(expense.split.shares) if expense and not isinstance(expense.split, EqualSplit) else {}
        )

        frm = ttk.Frame(self, padding=10)
        frm.grid(row=0, column=0, sticky="nsew")

        r = 0
        ttk.Label(frm, text="Description").grid(row=r, column=0, sticky="w", pady=2)
        ttk.Entry(frm, textvariable=self.v_desc, width=28).grid(row=r, column=1, sticky="w")
        r += 1

        ttk.Label(frm, text=f"Amount ({trip.currency})").grid(row=r, column=0, sticky="w", pady=2)
        ttk.Entry(frm, textvariable=self.v_amount, width=18).grid(row=r, column=1, sticky="w")
        r += 1

        ttk.Label(frm, text="Date (YYYY-MM-DD)").grid(row=r, column=0, sticky="w", pady=2)
        ttk.Entry(frm, textvariable=self.v_date, width=18).grid(row=r, column=1, sticky="w")
        r += 1

        ttk.Label(frm, text="Paid by").grid(row=r, column=0, sticky="w", pady=2)
        ttk.Combobox(frm, textvariable=self.v_payer, values=self.names,
                     width=16, state="readonly").grid(row=r, column=1, sticky="w")
        r += 1

        ttk.Label(frm, text="Category").grid(row=r, column=0, sticky="w", pady=2)
        ttk.Combobox(frm, textvariable=self.v_category, values=CATEGORIES + [CUSTOM],
                     width=16, state="readonly").grid(row=r, column=1, sticky="w")
        r += 1
        self.custom_entry = ttk.Entry(frm, textvariable=self.v_custom, width=28)
        self.custom_entry.grid(row=r, column=1, sticky="w")
        self.v_category.trace_add("write", lambda *_: self._toggle_custom())
        self._toggle_custom()
        r += 1

        modes = ttk.Frame(frm)
        modes.grid(row=r, column=0, columnspan=2, sticky="w", pady=(8, 0))
        ttk.Radiobutton(modes, text="Split equally", value="equal", variable=self.v_split,
                        command=self._toggle_split).pack(side="left")
        ttk.Radiobutton(modes, text="Split unequally", value="unequal", variable=self.v_split,
                        command=self._toggle_split).pack(side="left", padx=8)
        r += 1

        # Equal: participant checkboxes
        self.equal_frame = ttk.Frame(frm)
        self.equal_frame.grid(row=r, column=0, columnspan=2, sticky="w")
        ttk.Label(self.equal_frame, text="Split with:").grid(row=0, column=0, sticky="w")
        self.part_vars: Dict[str, tk.BooleanVar] = {}
        for i, m in enumerate(members):
            v = tk.BooleanVar(value=m.id in checked)
            self.part_vars[m.id] = v
            ttk.Checkbutton(self.equal_frame, text=m.name, variable=v).grid(row=i + 1, column=0, sticky="w")

        # Unequal: shares editor
        self.unequal_frame = ttk.Frame(frm)
        self.unequal_frame.grid(row=r, column=0, columnspan=2, sticky="w")
        ttk.Button(self.unequal_frame, text="Edit Shares…", command=self._edit_shares).grid(row=0, column=0, sticky="w")
        self.shares_label = ttk.Label(self.unequal_frame, text=self._shares_text())
        self.shares_label.grid(row=0, column=1, padx=8, sticky="w")
        self._toggle_split()
        r += 1

        btns = ttk.Frame(frm)
        btns.grid(row=r, column=0, columnspan=2, sticky="e", pady=(10, 0))
        ttk.Button(btns, text="OK", command=self._ok).grid(row=0, column=0, padx=4)
        ttk.Button(btns, text="Cancel", command=self._cancel).grid(row=0, column=1, padx=4)

        self.grab_set()
        self.transient(master)

    def _bind_enter_to_ok(self):
        """Bind Enter/Return to OK"""

        def on_enter(event=None):
            self._ok()
            return "break"

        self.bind("<Return>", on_enter)
        self.bind("<KP_Enter>", on_enter)

    def _toggle_custom(self):
        if self.v_category.get() == CUSTOM:
            self.custom_entry.grid()
        else:
            self.custom_entry.grid_remove()

    def _toggle_split(self):
        if self.v_split.get() == "equal":
            self.unequal_frame.grid_remove()
            self.equal_frame.grid()
        else:
            self.equal_frame.grid_remove()
            self.unequal_frame.grid()

    def _shares_text(self) -> str:
        parts = [f"{m.name}:{self.shares[m.id]:.2f}" for m in self.trip.members if m.id in self.shares]
        return "  ".join(parts) or "(no shares yet)"

    def _edit_shares(self):
        total = safe_float(self.v_amount.get(), 0.0)
        dlg = SharesEditor(self, self.trip.members, self.shares, total)
        self.wait_window(dlg)
        if dlg.result is not None:
            self.shares = dlg.result
            self.shares_label.config(text=self._shares_text())

    def _ok(self):
        """Validate and save expense"""
        payer_id = next((m.id for m in self.trip.members if m.name == self.v_payer.get()), "")
        category = self.v_custom.get() if self.v_category.get() == CUSTOM else self.v_category.get()
        try:
            self.result = build_expense(
                self.trip,
                description=self.v_desc.get(),
                amount=safe_float(self.v_amount.get(), None),
                date=self.v_date.get(),
                payer_id=payer_id,
                category=category,
                split_type=self.v_split.get(),
                participant_ids=[mid for mid, v in self.part_vars.items() if v.get()],
                shares=self.shares,
                expense_id=self.expense.id if self.expense else None,
            )
        except TripError as ex:
            messagebox.showerror("Invalid expense", str(ex), parent=self)
            return
        self.destroy()

    def _cancel(self):
        """Cancel and close"""
        self.result = None
        self.destroy()


class QuickAddDialog(tk.Toplevel):
    """Free-text entry for AI expense parsing"""

    def __init__(self, master):
        super().__init__(master)
        self.title("Quick Add")
        self.resizable(False, False)
        self.result: Optional[str] = None

        frm = ttk.Frame(self, padding=10)
        frm.grid(row=0, column=0, sticky="nsew")
        ttk.Label(frm, text='Describe the expense, e.g. "Bob paid 42 for pizza with Alice"').grid(
            row=0, column=0, columnspan=2, sticky="w")
        self.text = tk.Text(frm, width=48, height=4)
        self.text.grid(row=1, column=0, columnspan=2, pady=6)
        ttk.Button(frm, text="Parse", command=self._ok).grid(row=2, column=0, sticky="e", padx=4)
        ttk.Button(frm, text="Cancel", command=self.destroy).grid(row=2, column=1, sticky="w")

        self.grab_set()
        self.transient(master)

    def _ok(self):
        self.result = self.text.get("1.0", "end").strip() or None
        self.destroy()
