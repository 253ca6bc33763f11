"""
CampaignPulse Excel Export Helpers

Turns lists of flat dict rows into an openpyxl workbook: one sheet per
list, header row from the first row's keys.
"""

import io
from datetime import date, datetime

import openpyxl

# Excel's hard limit on sheet name length
MAX_SHEET_NAME = 31


def _cell_value(value):
    if value is None or isinstance(value, (int, float, str, bool, date, datetime)):
        return value
    return str(value)


def add_sheet_from_rows(wb: openpyxl.Workbook, name: str, rows: list[dict]):
    """Append a sheet named `name` (truncated to 31 chars). Empty rows give an empty sheet."""
    ws = wb.create_sheet(name[:MAX_SHEET_NAME])
    if not rows:
        return ws

    headers = list(rows[0].keys())
    ws.append(headers)
    for row in rows:
        ws.append([_cell_value(row.get(h)) for h in headers])
    return ws


def rows_to_workbook(sheets: list[tuple[str, list[dict]]]) -> openpyxl.Workbook:
    """Build a workbook from (sheet name, rows) pairs, in order."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets:
        add_sheet_from_rows(wb, name, rows)
    if not wb.sheetnames:
        wb.create_sheet("Sheet1")
    return wb


def workbook_to_buffer(wb: openpyxl.Workbook) -> io.BytesIO:
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf
