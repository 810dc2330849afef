from __future__ import annotations

from openpyxl import load_workbook

from excel_export import export_excel


def test_excel_report_sheets(tmp_path, trip, make_expense):
    trip.expenses = [
        make_expense(90, "a", ["a", "b", "c"], date="2024-05-01", description="Dinner"),
        make_expense(30, "b", shares={"c": 30.0}, date="2024-05-02", description="Tickets"),
    ]
    path = tmp_path / "report.xlsx"

    export_excel(trip, str(path))

    wb = load_workbook(path)
    assert wb.sheetnames == ["Expenses", "Balances", "Settlements"]

    ws = wb["Expenses"]
    assert ws["A1"].value == "Date"
    assert ws["D1"].value == "Amount (EUR)"
    assert ws["B2"].value == "Tickets"
    assert ws["E2"].value == "Bob"
    assert ws["G2"].value == "Carol: 30.00"
    assert ws["G3"].value == "Alice, Bob, Carol"
    assert ws["A4"].value == "TOTAL"
    assert ws["D4"].value == "=SUM(D2:D3)"

    ws = wb["Balances"]
    rows = list(ws.iter_rows(min_row=2, values_only=True))
    assert rows[0] == ("Alice", 60.0, "is owed €60.00")
    assert rows[1] == ("Bob", 0.0, "is settled up")
    assert rows[2] == ("Carol", -60.0, "owes €60.00")
    assert rows[3][:2] == ("Total group spending", 120.0)

    ws = wb["Settlements"]
    rows = list(ws.iter_rows(min_row=2, values_only=True))
    assert rows == [("Carol", "Alice", 60.0)]


def test_excel_report_when_settled(tmp_path, trip):
    path = tmp_path / "report.xlsx"

    export_excel(trip, str(path))

    wb = load_workbook(path)
    assert wb["Expenses"].max_row == 1
    assert wb["Settlements"]["A2"].value == "All debts are settled!"
