from __future__ import annotations
import csv

import pytest

from csv_handler import COLUMNS, export_expenses_to_csv, import_expenses_from_csv
from models import EqualSplit, UnequalSplit


def test_export_writes_member_names(tmp_path, trip, make_expense):
    trip.expenses = [
        make_expense(90, "a", ["a", "b", "c"], description="Dinner"),
        make_expense(50, "c", shares={"a": 20.0, "b": 30.0}, description="Museum"),
    ]
    path = tmp_path / "expenses.csv"

    export_expenses_to_csv(trip, str(path))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert list(rows[0].keys()) == COLUMNS
    assert rows[0]["payer"] == "Alice"
    assert rows[0]["split_type"] == "equal"
    assert rows[0]["split"] == "Alice;Bob;Carol"
    assert rows[1]["payer"] == "Carol"
    assert rows[1]["split"] == "Alice:20.0;Bob:30.0"


def test_exported_file_reads_back(tmp_path, trip, make_expense):
    trip.expenses = [
        make_expense(90, "a", ["a", "b"]),
        make_expense(50, "c", shares={"a": 20.0, "b": 30.0}),
    ]
    path = tmp_path / "expenses.csv"
    export_expenses_to_csv(trip, str(path))

    imported = import_expenses_from_csv(trip, str(path))

    assert [e.id for e in imported] == [e.id for e in trip.expenses]
    assert imported[0].split == EqualSplit(["a", "b"])
    assert imported[1].split == UnequalSplit({"a": 20.0, "b": 30.0})
    assert imported[1].payer_id == "c"
    assert imported[1].amount == 50.0


def _write(path, rows):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)
        writer.writerows(rows)


def test_import_matches_names_case_insensitively_and_fills_ids(tmp_path, trip):
    path = tmp_path / "in.csv"
    _write(path, [["", "2024-06-01", "Bus", "Transport", "9", " bob ", "equal", "ALICE; bob"]])

    (e,) = import_expenses_from_csv(trip, str(path))

    assert e.id
    assert e.payer_id == "b"
    assert e.split == EqualSplit(["a", "b"])


def test_import_unknown_member(tmp_path, trip):
    path = tmp_path / "in.csv"
    _write(path, [["x", "2024-06-01", "Bus", "Transport", "9", "Zed", "equal", "Alice"]])

    with pytest.raises(ValueError, match="Row 2: unknown member 'Zed'"):
        import_expenses_from_csv(trip, str(path))


def test_import_unknown_split_type(tmp_path, trip):
    path = tmp_path / "in.csv"
    _write(path, [["x", "2024-06-01", "Bus", "Transport", "9", "Alice", "percent", "Alice"]])

    with pytest.raises(ValueError, match="split type"):
        import_expenses_from_csv(trip, str(path))


@pytest.mark.parametrize("row, message", [
    (["x", "2024-06-01", "Bus", "Transport", "9", "Alice", "unequal", "Alice:2;Bob:3"], "sum of shares"),
    (["x", "2024-06-01", "Bus", "Transport", "9", "Alice", "unequal", "Alice:12;Bob:-3"], "cannot be negative"),
    (["x", "2024-06-01", "Bus", "Transport", "9", "Alice", "equal", ""], "at least one participant"),
    (["x", "2024-06-01", "Bus", "Transport", "nan", "Alice", "equal", "Alice"], "greater than zero"),
])
def test_import_validates_rows(tmp_path, trip, row, message):
    path = tmp_path / "in.csv"
    _write(path, [row])

    with pytest.raises(ValueError, match=f"Row 2: Expense 'Bus':.*{message}"):
        import_expenses_from_csv(trip, str(path))
