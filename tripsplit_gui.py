"""
TripSplit GUI
- Create groups (trips), add members and record who paid for what.
- See each member's balance and the fewest payments needed to settle up.
- Import/export groups as JSON, expenses as CSV, and a report as Excel.

Run:
  python tripsplit_gui.py

Dependencies:
  pip install openpyxl requests
(Tkinter ships with most Python distributions; on some Linux you may need: sudo apt-get install python3-tk)

Set TRIPSPLIT_AI_URL and TRIPSPLIT_AI_KEY to enable "Quick Add" free-text parsing.
"""
from __future__ import annotations
import logging
import os

try:
    import tkinter as tk
except ModuleNotFoundError:
    tk = None

from main_app import TripSplitApp


def main():
    """Main entry point for the application"""
    logging.basicConfig(
        level=os.environ.get("TRIPSPLIT_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if tk is None:
        raise RuntimeError(
            'tkinter is not available. Install it (e.g., on Ubuntu: sudo apt-get install python3-tk) '
            'and re-run to use the GUI.'
        )

    root = tk.Tk()
    TripSplitApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
