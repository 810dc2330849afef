"""
Main application window for TripSplit GUI
"""
from __future__ import annotations
import logging
from typing import Optional

try:
    import tkinter as tk
    from tkinter import ttk, messagebox, filedialog, simpledialog
except ModuleNotFoundError:
    tk = None
    ttk = None
    messagebox = None
    filedialog = None
    simpledialog = None

from models import AppState, Trip
from config import (
    add_imported_trip,
    export_trip_json,
    import_trip_json,
    load_ai_settings,
    load_state,
    save_state,
)
from trips import (
    TripError,
    active_trip,
    add_expense,
    add_members,
    close_trip,
    create_trip,
    delete_expense,
    delete_member,
    delete_trip,
    open_trip,
    rename_member,
    toggle_theme,
    trip_report,
    update_expense,
)
from computations import describe_balance, expenses_newest_first
from utils import format_currency
from excel_export import export_excel
from gui_dialogs import ExpenseDialog, QuickAddDialog
from csv_handler import export_expenses_to_csv, import_expenses_from_csv
from ai_parser import AiParseError, parse_expense_text

logger = logging.getLogger(__name__)

THEMES = {
    "light": {"bg": "#f5f5f5", "fg": "#202020", "field": "#ffffff"},
    "dark": {"bg": "#1e1e1e", "fg": "#e8e8e8", "field": "#2b2b2b"},
}


class TripSplitApp(ttk.Frame):
    """Main application window"""

    def __init__(self, master: tk.Tk, state_path: Optional[str] = None):
        super().__init__(master, padding=8)
        self.master = master
        self.master.title("TripSplit")
        self.master.geometry("1000x620")
        self.grid(row=0, column=0, sticky="nsew")
        self.master.rowconfigure(0, weight=1)
        self.master.columnconfigure(0, weight=1)

        self.state_path = state_path
        try:
            self.state: AppState = load_state(state_path)
        except (OSError, ValueError, KeyError) as ex:
            messagebox.showerror("Load failed", f"Could not read saved data, starting fresh.\n{ex}")
            self.state = AppState()
        self.ai_settings = load_ai_settings()

        self._build_menu()
        self._build_ui()
        self.refresh_all()

    @property
    def trip(self) -> Optional[Trip]:
        return active_trip(self.state)

    def save(self):
        try:
            save_state(self.state, self.state_path)
        except OSError as ex:
            logger.error("Saving state failed: %s", ex)
            messagebox.showerror("Save failed", str(ex))

    # ---------- Menu ----------
    def _build_menu(self):
        """Build application menu bar"""
        menubar = tk.Menu(self.master)
        filem = tk.Menu(menubar, tearoff=0)
        filem.add_command(label="Import Group JSON…", command=self.import_trip_dialog)
        filem.add_command(label="Export Group JSON…", command=self.export_trip_dialog)
        filem.add_separator()
        filem.add_command(label="Export CSV…", command=self.export_csv_dialog)
        filem.add_command(label="Import CSV…", command=self.import_csv_dialog)
        filem.add_separator()
        filem.add_command(label="Export Excel…", command=self.export_excel_dialog)
        filem.add_separator()
        filem.add_command(label="Exit", command=self.master.destroy)
        menubar.add_cascade(label="File", menu=filem)

        viewm = tk.Menu(menubar, tearoff=0)
        viewm.add_command(label="Toggle Dark Mode", command=self.toggle_theme)
        menubar.add_cascade(label="View", menu=viewm)

        self.master.config(menu=menubar)

    def toggle_theme(self):
        toggle_theme(self.state)
        self.save()
        self.apply_theme()

    def apply_theme(self):
        colors = THEMES.get(self.state.theme, THEMES["light"])
        style = ttk.Style(self.master)
        style.configure(".", background=colors["bg"], foreground=colors["fg"])
        style.configure("Treeview", background=colors["field"], fieldbackground=colors["field"],
                        foreground=colors["fg"])
        self.master.configure(background=colors["bg"])
        for lb in (self.trips_list, self.members_list):
            lb.configure(background=colors["field"], foreground=colors["fg"])

    # ---------- UI ----------
    def _build_ui(self):
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)
        self.dashboard = ttk.Frame(self)
        self.dashboard.grid(row=0, column=0, sticky="nsew")
        self.trip_view = ttk.Frame(self)
        self.trip_view.grid(row=0, column=0, sticky="nsew")

        self._build_dashboard()
        self._build_trip_view()

    def _build_dashboard(self):
        """Build trip list and create form"""
        frm = self.dashboard
        frm.columnconfigure(0, weight=1)
        frm.rowconfigure(1, weight=1)

        ttk.Label(frm, text="Your groups:").grid(row=0, column=0, sticky="w")
        self.trips_list = tk.Listbox(frm, height=16)
        self.trips_list.grid(row=1, column=0, sticky="nsew", pady=6)
        self.trips_list.bind("<Double-Button-1>", lambda _e: self.open_selected_trip())
        self.empty_note = ttk.Label(frm, text="No groups yet. Create one below!")
        self.empty_note.grid(row=2, column=0, sticky="w")

        actions = ttk.Frame(frm)
        actions.grid(row=3, column=0, sticky="ew", pady=(4, 10))
        ttk.Button(actions, text="Open", command=self.open_selected_trip).pack(side="left", padx=3)
        ttk.Button(actions, text="Delete", command=self.delete_selected_trip).pack(side="left", padx=3)

        create = ttk.Frame(frm)
        create.grid(row=4, column=0, sticky="ew")
        ttk.Label(create, text="Name").pack(side="left")
        self.new_trip_name = tk.StringVar()
        ttk.Entry(create, textvariable=self.new_trip_name, width=24).pack(side="left", padx=4)
        ttk.Label(create, text="Currency").pack(side="left")
        self.new_trip_currency = tk.StringVar(value="USD")
        ttk.Entry(create, textvariable=self.new_trip_currency, width=6).pack(side="left", padx=4)
        ttk.Button(create, text="Create Group", command=self.create_trip).pack(side="left", padx=4)

    def _build_trip_view(self):
        """Build header and tabs for the open trip"""
        frm = self.trip_view
        frm.columnconfigure(0, weight=1)
        frm.rowconfigure(1, weight=1)

        header = ttk.Frame(frm)
        header.grid(row=0, column=0, sticky="ew")
        ttk.Button(header, text="← Back", command=self.back_to_dashboard).pack(side="left")
        self.trip_title = tk.StringVar(value="")
        ttk.Label(header, textvariable=self.trip_title, font=("TkDefaultFont", 14, "bold")).pack(side="left", padx=10)

        nb = ttk.Notebook(frm)
        nb.grid(row=1, column=0, sticky="nsew", pady=(6, 0))
        self.tab_summary = ttk.Frame(nb, padding=8)
        self.tab_expenses = ttk.Frame(nb, padding=8)
        self.tab_members = ttk.Frame(nb, padding=8)
        nb.add(self.tab_summary, text="Summary")
        nb.add(self.tab_expenses, text="Expenses")
        nb.add(self.tab_members, text="Members")

        self._build_summary_tab()
        self._build_expenses_tab()
        self._build_members_tab()

    def _build_summary_tab(self):
        tab = self.tab_summary
        tab.columnconfigure(0, weight=1)

        self.total_var = tk.StringVar(value="")
        ttk.Label(tab, textvariable=self.total_var).grid(row=0, column=0, sticky="w")

        cols = ("member", "balance", "status")
        self.bal_tree = ttk.Treeview(tab, columns=cols, show="headings", height=8)
        for c, w in zip(cols, [160, 120, 260]):
            self.bal_tree.heading(c, text=c)
            self.bal_tree.column(c, width=w, anchor="w")
        self.bal_tree.grid(row=1, column=0, sticky="nsew", pady=6)
        tab.rowconfigure(1, weight=1)

        ttk.Label(tab, text="Settle up:").grid(row=2, column=0, sticky="w", pady=(10, 0))
        tcols = ("from", "to", "amount")
        self.tr_tree = ttk.Treeview(tab, columns=tcols, show="headings", height=8)
        for c, w in zip(tcols, [160, 160, 120]):
            self.tr_tree.heading(c, text=c)
            self.tr_tree.column(c, width=w, anchor="w")
        self.tr_tree.grid(row=3, column=0, sticky="nsew")
        tab.rowconfigure(3, weight=1)
        self.settled_var = tk.StringVar(value="")
        ttk.Label(tab, textvariable=self.settled_var).grid(row=4, column=0, sticky="w")

    def _build_expenses_tab(self):
        tab = self.tab_expenses
        tab.columnconfigure(0, weight=1)
        top = ttk.Frame(tab)
        top.grid(row=0, column=0, sticky="ew")
        ttk.Button(top, text="Add", command=self.add_expense).pack(side="left", padx=3)
        self.quick_add_btn = ttk.Button(top, text="Quick Add (AI)…", command=self.quick_add_expense)
        self.quick_add_btn.pack(side="left", padx=3)
        ttk.Button(top, text="Edit", command=self.edit_selected_expense).pack(side="left", padx=3)
        ttk.Button(top, text="Delete", command=self.delete_selected_expense).pack(side="left", padx=3)

        cols = ("date", "description", "category", "amount", "paid_by", "split")
        self.exp_tree = ttk.Treeview(tab, columns=cols, show="headings", height=18)
        for c, w in zip(cols, [95, 220, 110, 110, 120, 300]):
            self.exp_tree.heading(c, text=c)
            self.exp_tree.column(c, width=w, anchor="w")
        self.exp_tree.grid(row=1, column=0, sticky="nsew", pady=6)
        tab.rowconfigure(1, weight=1)

        yscroll = ttk.Scrollbar(tab, orient="vertical", command=self.exp_tree.yview)
        self.exp_tree.configure(yscroll=yscroll.set)
        yscroll.grid(row=1, column=1, sticky="ns")

    def _build_members_tab(self):
        tab = self.tab_members
        tab.columnconfigure(0, weight=1)
        tab.rowconfigure(0, weight=1)

        self.members_list = tk.Listbox(tab, height=16)
        self.members_list.grid(row=0, column=0, sticky="nsew", pady=6)

        controls = ttk.Frame(tab)
        controls.grid(row=1, column=0, sticky="ew")
        self.new_member_var = tk.StringVar()
        ttk.Entry(controls, textvariable=self.new_member_var, width=30).pack(side="left")
        ttk.Button(controls, text="Add", command=self.add_members).pack(side="left", padx=4)
        ttk.Button(controls, text="Rename Selected", command=self.rename_selected_member).pack(side="left", padx=4)
        ttk.Button(controls, text="Remove Selected", command=self.remove_selected_member).pack(side="left", padx=4)
        ttk.Label(tab, text="Add several at once with commas: Alice, Bob, Carol").grid(
            row=2, column=0, sticky="w", pady=(8, 0))

    # ---------- Trips ----------
    def _selected_trip_id(self) -> Optional[str]:
        sel = self.trips_list.curselection()
        if not sel:
            return None
        return self.state.trips[sel[0]].id

    def create_trip(self):
        try:
            create_trip(self.state, self.new_trip_name.get(), self.new_trip_currency.get())
        except TripError as ex:
            messagebox.showerror("Create group", str(ex))
            return
        self.new_trip_name.set("")
        self.save()
        self.refresh_all()

    def open_selected_trip(self):
        tid = self._selected_trip_id()
        if tid:
            open_trip(self.state, tid)
            self.save()
            self.refresh_all()

    def delete_selected_trip(self):
        tid = self._selected_trip_id()
        if not tid:
            return
        if messagebox.askyesno("Delete", "Permanently delete this group and all its data?"):
            delete_trip(self.state, tid)
            self.save()
            self.refresh_all()

    def back_to_dashboard(self):
        close_trip(self.state)
        self.save()
        self.refresh_all()

    # ---------- Members ----------
    def _selected_member_id(self) -> Optional[str]:
        sel = self.members_list.curselection()
        if not sel or not self.trip:
            return None
        return self.trip.members[sel[0]].id

    def add_members(self):
        try:
            added = add_members(self.trip, self.new_member_var.get())
        except TripError as ex:
            messagebox.showerror("Members", str(ex))
            return
        self.new_member_var.set("")
        self.save()
        self.refresh_all()
        logger.debug("%d member(s) added", len(added))

    def rename_selected_member(self):
        mid = self._selected_member_id()
        if not mid:
            return
        member = next(m for m in self.trip.members if m.id == mid)
        new_name = simpledialog.askstring("Rename", "Enter new name:", initialvalue=member.name, parent=self)
        if not new_name:
            return
        try:
            rename_member(self.trip, mid, new_name)
        except TripError as ex:
            messagebox.showerror("Rename", str(ex))
            return
        self.save()
        self.refresh_all()

    def remove_selected_member(self):
        mid = self._selected_member_id()
        if not mid:
            return
        if not messagebox.askyesno("Remove member", "Are you sure you want to delete this member?"):
            return
        try:
            delete_member(self.trip, mid)
        except TripError as ex:
            messagebox.showerror("Remove member", str(ex))
            return
        self.save()
        self.refresh_all()

    # ---------- Expenses ----------
    def add_expense(self, draft=None):
        if not self.trip.members:
            messagebox.showerror("No members", "Add members first!")
            return
        dlg = ExpenseDialog(self.master, self.trip, None, draft)
        self.master.wait_window(dlg)
        if dlg.result:
            add_expense(self.trip, dlg.result)
            self.save()
            self.refresh_all()

    def quick_add_expense(self):
        if not self.trip.members:
            messagebox.showerror("No members", "Add members first!")
            return
        dlg = QuickAddDialog(self.master)
        self.master.wait_window(dlg)
        if not dlg.result:
            return
        try:
            draft = parse_expense_text(dlg.result, self.trip, self.ai_settings)
        except AiParseError as ex:
            messagebox.showerror("Quick Add", str(ex))
            return
        self.add_expense(draft)

    def edit_selected_expense(self):
        sel = self.exp_tree.selection()
        if not sel:
            messagebox.showinfo("Edit", "Select an expense row first.")
            return
        e = next((x for x in self.trip.expenses if x.id == sel[0]), None)
        if not e:
            return
        dlg = ExpenseDialog(self.master, self.trip, e)
        self.master.wait_window(dlg)
        if dlg.result:
            update_expense(self.trip, dlg.result)
            self.save()
            self.refresh_all()

    def delete_selected_expense(self):
        sel = self.exp_tree.selection()
        if not sel:
            messagebox.showinfo("Delete", "Select an expense row first.")
            return
        if messagebox.askyesno("Delete", "Delete selected expense?"):
            delete_expense(self.trip, sel[0])
            self.save()
            self.refresh_all()

    # ---------- File ops ----------
    def import_trip_dialog(self):
        fp = filedialog.askopenfilename(
            title="Import group JSON",
            filetypes=[("Group JSON", "*.json"), ("All files", "*.*")]
        )
        if not fp:
            return
        try:
            trip = add_imported_trip(self.state, import_trip_json(fp))
        except Exception as ex:
            messagebox.showerror("Import failed", str(ex))
            return
        open_trip(self.state, trip.id)
        self.save()
        self.refresh_all()

    def export_trip_dialog(self):
        if not self._require_trip("Export"):
            return
        fp = filedialog.asksaveasfilename(
            title="Export group JSON",
            defaultextension=".json",
            filetypes=[("Group JSON", "*.json")]
        )
        if not fp:
            return
        try:
            export_trip_json(self.trip, fp)
            messagebox.showinfo("Export", f"Exported: {fp}")
        except Exception as ex:
            messagebox.showerror("Export failed", str(ex))

    def export_excel_dialog(self):
        if not self._require_trip("Export Excel"):
            return
        fp = filedialog.asksaveasfilename(
            title="Export Excel",
            defaultextension=".xlsx",
            filetypes=[("Excel Workbook", "*.xlsx")]
        )
        if not fp:
            return
        try:
            export_excel(self.trip, fp)
            messagebox.showinfo("Export", f"Exported: {fp}")
        except Exception as ex:
            messagebox.showerror("Export failed", str(ex))

    def export_csv_dialog(self):
        """Export current expenses to CSV file"""
        if not self._require_trip("Export CSV"):
            return
        if not self.trip.expenses:
            messagebox.showinfo("Export CSV", "No expenses to export.")
            return
        fp = filedialog.asksaveasfilename(
            title="Export Expenses to CSV",
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")]
        )
        if not fp:
            return
        try:
            export_expenses_to_csv(self.trip, fp)
            messagebox.showinfo("Export CSV", f"Exported {len(self.trip.expenses)} expenses to:\n{fp}")
        except Exception as ex:
            messagebox.showerror("Export failed", str(ex))

    def import_csv_dialog(self):
        """Import expenses from CSV file"""
        if not self._require_trip("Import CSV"):
            return
        fp = filedialog.askopenfilename(
            title="Import Expenses from CSV",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")]
        )
        if not fp:
            return
        try:
            imported = import_expenses_from_csv(self.trip, fp)
        except Exception as ex:
            messagebox.showerror("Import failed", str(ex))
            return
        if not imported:
            messagebox.showinfo("Import CSV", "No expenses found in CSV file.")
            return

        choice = messagebox.askyesnocancel(
            "Import CSV",
            f"Found {len(imported)} expenses in CSV.\n\n"
            "Yes: Append to current expenses\n"
            "No: Replace current expenses\n"
            "Cancel: Cancel import"
        )
        if choice is None:
            return
        elif choice:
            known = {e.id for e in self.trip.expenses}
            self.trip.expenses.extend(e for e in imported if e.id not in known)
        else:
            self.trip.expenses = imported
        self.save()
        self.refresh_all()

    def _require_trip(self, title: str) -> bool:
        if self.trip is None:
            messagebox.showinfo(title, "Open a group first.")
            return False
        return True

    # ---------- Refresh ----------
    def refresh_all(self):
        """Refresh all UI elements"""
        self.apply_theme()
        trip = self.trip
        if trip is None:
            self.trip_view.grid_remove()
            self.dashboard.grid()
            self.refresh_dashboard()
            return
        self.dashboard.grid_remove()
        self.trip_view.grid()
        self.trip_title.set(f"{trip.name} ({trip.currency})")
        self.quick_add_btn.configure(state="normal" if self.ai_settings.enabled else "disabled")
        self.refresh_members()
        self.refresh_expenses()
        self.refresh_summary()

    def refresh_dashboard(self):
        self.trips_list.delete(0, tk.END)
        for t in self.state.trips:
            self.trips_list.insert(tk.END, f"{t.name} ({t.currency})")
        if self.state.trips:
            self.empty_note.grid_remove()
        else:
            self.empty_note.grid()

    def refresh_members(self):
        self.members_list.delete(0, tk.END)
        for m in self.trip.members:
            self.members_list.insert(tk.END, m.name)

    def refresh_expenses(self):
        """Refresh expenses tree view"""
        for iid in self.exp_tree.get_children():
            self.exp_tree.delete(iid)

        trip = self.trip
        names = {m.id: m.name for m in trip.members}
        for e in expenses_newest_first(trip.expenses):
            if e.split_type == "equal":
                split_txt = "equal: " + ", ".join(names.get(pid, "N/A") for pid in e.split.participant_ids)
            else:
                split_txt = ", ".join(f"{names.get(mid, 'N/A')}:{v:.2f}" for mid, v in e.split.shares.items())
            values = (
                e.date, e.description, e.category, format_currency(e.amount, trip.currency),
                names.get(e.payer_id, "N/A"), split_txt
            )
            self.exp_tree.insert("", "end", iid=e.id, values=values)

    def refresh_summary(self):
        """Refresh balances, totals and settlements"""
        trip = self.trip
        report = trip_report(trip)
        self.total_var.set(f"Total Group Spending: {format_currency(report['total'], trip.currency)}")

        for iid in self.bal_tree.get_children():
            self.bal_tree.delete(iid)
        for m in trip.members:
            b = report["balances"][m.id]
            self.bal_tree.insert("", "end", values=(
                m.name, format_currency(b, trip.currency), describe_balance(b, trip.currency)))

        for iid in self.tr_tree.get_children():
            self.tr_tree.delete(iid)
        for s in report["settlements"]:
            self.tr_tree.insert("", "end", values=(s.debtor, s.creditor, format_currency(s.amount, trip.currency)))
        self.settled_var.set("" if report["settlements"] else "All debts are settled!")
