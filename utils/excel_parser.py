"""
Excel/CSV parsing with pandas for exported copies of the ratings sheet.
Cells are read as text with no header inference, so the first row stays the schema row.
"""
from pathlib import Path
from typing import List, Union

import pandas as pd

CSV_SUFFIXES = {".csv"}


def _cell_text(v) -> str:
    if v is None:
        return ""
    try:
        if pd.isna(v):
            return ""
    except (TypeError, ValueError):
        pass
    return str(v)


def _frame_to_rows(df: pd.DataFrame) -> List[List[str]]:
    """DataFrame -> list of rows of text; trailing empty cells and trailing empty rows dropped.
    Interior empty rows stay as [] the way the Sheets API reports them."""
    rows = []
    for values in df.itertuples(index=False, name=None):
        row = [_cell_text(v) for v in values]
        while row and row[-1] == "":
            row.pop()
        rows.append(row)
    while rows and not rows[-1]:
        rows.pop()
    return rows


def list_sheet_names(path: Union[str, Path]) -> List[str]:
    """Tab names in workbook order. A CSV file is a single tab named after its stem."""
    path = Path(path)
    if path.suffix.lower() in CSV_SUFFIXES:
        return [path.stem]
    with pd.ExcelFile(path) as xl:
        return [str(s) for s in xl.sheet_names]


def read_sheet_rows(path: Union[str, Path], sheet_name: str) -> List[List[str]]:
    """Read one tab as rows of cell text."""
    path = Path(path)
    if path.suffix.lower() in CSV_SUFFIXES:
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skip_blank_lines=False)
    else:
        df = pd.read_excel(path, sheet_name=sheet_name, header=None, dtype=str)
    return _frame_to_rows(df)
