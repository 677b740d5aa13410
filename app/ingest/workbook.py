"""
Thin reader over openpyxl: worksheet dimensions and per-cell text.
"""
import datetime
import logging
import zipfile
from io import BytesIO

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)


class WorkbookError(Exception):
    """The uploaded bytes are not a readable spreadsheet package."""


def cell_text(value):
    """Render a cell value the way it reads in the spreadsheet."""
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.strftime('%d/%m/%Y')
        return value.strftime('%d/%m/%Y %H:%M:%S')
    if isinstance(value, datetime.date):
        return value.strftime('%d/%m/%Y')
    if isinstance(value, datetime.time):
        return value.strftime('%H:%M:%S')
    return str(value)


class SheetView:
    """1-based (row, column) text access to one worksheet."""

    def __init__(self, worksheet):
        self._ws = worksheet
        self.name = worksheet.title

        # openpyxl reports 1x1 for a sheet with no cells at all
        if (worksheet.max_row == 1 and worksheet.max_column == 1
                and worksheet.cell(row=1, column=1).value is None):
            self.row_count = 0
            self.column_count = 0
        else:
            self.row_count = worksheet.max_row
            self.column_count = worksheet.max_column

    def cell_text(self, row, column):
        return cell_text(self._ws.cell(row=row, column=column).value)

    def row_texts(self, row):
        return [self.cell_text(row, column) for column in range(1, self.column_count + 1)]

    def __repr__(self):
        return f"<SheetView {self.name!r} {self.row_count}x{self.column_count}>"


def open_workbook(content):
    """
    Load workbook bytes and return a SheetView per worksheet, in order.
    Formulas are read as their cached values.
    """
    try:
        workbook = load_workbook(BytesIO(content), data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
        logger.warning("Unreadable workbook: %s", exc)
        raise WorkbookError(str(exc)) from exc

    return [SheetView(ws) for ws in workbook.worksheets]
