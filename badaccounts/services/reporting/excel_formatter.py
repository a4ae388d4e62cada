"""
rows_to_dataframe(rows) / write_rows_xlsx(rows, path)

Plain export for the bad-accounts report:
- One sheet, header row = column names, one row per record.
- Every value written as text (NULL -> ""), XML-illegal chars stripped.
- Bold header with a subtle fill, thin borders, frozen header, tidy column widths.
"""
from __future__ import annotations

import re
import math
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE  # strips XML-illegal control chars

from badaccounts.models import EXPORT_COLUMNS

SHEET_NAME = "Sheet1"

# ---- visual constants ----
HDR_FONT     = Font(bold=True, size=11)
DATA_FONT    = Font(size=11)
HDR_FILL     = PatternFill("solid", "F2F2F2", "F2F2F2")

THIN_BORDER  = Border(
    left=Side(style="thin", color="DDDDDD"),
    right=Side(style="thin", color="DDDDDD"),
    top=Side(style="thin", color="DDDDDD"),
    bottom=Side(style="thin", color="DDDDDD"),
)

MIN_WIDTH = 10
MAX_WIDTH = 60

_SURROGATE_RE = re.compile(r'[\uD800-\uDFFF]')  # unpaired UTF-16 surrogates (invalid in XML)


def _strip_illegal_xml(s: str) -> str:
    """Remove XML-illegal control chars & stray surrogates; preserve normal whitespace."""
    if s is None:
        return ""
    s = str(s)
    s = ILLEGAL_CHARACTERS_RE.sub("", s)
    s = _SURROGATE_RE.sub("", s)
    return s


def _to_text(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, float) and (math.isnan(val) or math.isinf(val)):
        return ""
    if isinstance(val, (bytes, bytearray)):
        val = val.decode("utf-8", "replace")
    return _strip_illegal_xml(str(val))


def _as_record(x: Any) -> dict:
    if is_dataclass(x) and not isinstance(x, type):
        return asdict(x)
    if isinstance(x, dict):
        return x
    raise TypeError(f"Cannot export {type(x).__name__} as a row")


# ---- dataframe builder ----
def rows_to_dataframe(rows: Iterable[Any], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    columns = list(columns or EXPORT_COLUMNS)
    records = [_as_record(r) for r in rows]

    df = pd.DataFrame(records, columns=columns)
    return df.astype(object).map(_to_text)


# ---- write helpers ----
def write_df(ws, df: pd.DataFrame, start_row: int = 1):
    for r_idx, row in enumerate(dataframe_to_rows(df, index=False, header=True), start=start_row):
        is_header = (r_idx == start_row)
        for c_idx, value in enumerate(row, 1):
            cell = ws.cell(r_idx, c_idx, _to_text(value))
            cell.font = HDR_FONT if is_header else DATA_FONT
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="center")
            if is_header:
                cell.fill = HDR_FILL

    ws.freeze_panes = ws.cell(start_row + 1, 1)

    # auto-size columns with reasonable bounds
    for col in range(1, ws.max_column + 1):
        values = [str(ws.cell(r, col).value or "") for r in range(1, ws.max_row + 1)]
        width = min(max(MIN_WIDTH, max(len(v) for v in values) + 2), MAX_WIDTH)
        ws.column_dimensions[get_column_letter(col)].width = width


# ---- public API ----
def build_workbook(rows: Iterable[Any], columns: Optional[Sequence[str]] = None) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    write_df(ws, rows_to_dataframe(rows, columns), start_row=1)
    return wb


def write_rows_xlsx(rows: Iterable[Any], path: Union[str, Path], columns: Optional[Sequence[str]] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = build_workbook(rows, columns)
    wb.save(path)
    return path
