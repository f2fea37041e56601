import os
from typing import List

import pandas as pd

from models import ColumnInfo, ParsedFileData

MAX_ROWS = 10_000

_FILE_TYPES = {
    ".csv": "csv",
    ".txt": "txt",
    ".xlsx": "excel",
    ".xls": "excel",
}


class RowLimitExceededError(ValueError):
    def __init__(self, row_count: int, max_rows: int = MAX_ROWS):
        super().__init__(
            f"File exceeds the maximum allowed rows. Found {row_count:,} rows, maximum is {max_rows:,} rows."
        )
        self.row_count = row_count
        self.max_rows = max_rows


class UnsupportedFileTypeError(ValueError):
    pass


def get_file_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    return _FILE_TYPES.get(ext, "unknown")


def infer_column_type(values: pd.Series) -> str:
    present = values[values.str.strip() != ""]
    if present.empty:
        return "empty"
    if pd.to_numeric(present.str.strip(), errors="coerce").notna().all():
        return "number"
    if pd.to_datetime(present.str.strip(), errors="coerce", format="mixed").notna().all():
        return "date"
    return "text"


def load_file(path: str, max_rows: int = MAX_ROWS) -> ParsedFileData:
    """
    Read a CSV/TXT or Excel file into ParsedFileData.
    Every cell is kept as a string; blank rows are dropped.
    """
    file_type = get_file_type(path)
    if file_type in ("csv", "txt"):
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    elif file_type == "excel":
        df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)
    else:
        raise UnsupportedFileTypeError(f"Unsupported file type: {path}")

    df.columns = [str(c).strip() for c in df.columns]
    if len(df.columns) == 0:
        raise ValueError(f"File is empty: {path}")

    df = df.fillna("").astype(str)
    blank = df.apply(lambda col: col.str.strip() == "").all(axis=1)
    df = df.loc[~blank]

    if len(df) > max_rows:
        raise RowLimitExceededError(len(df), max_rows)

    columns: List[ColumnInfo] = [ColumnInfo(name=c, inferred_type=infer_column_type(df[c])) for c in df.columns]
    return ParsedFileData(
        columns=columns,
        rows=df.to_dict(orient="records"),
        file_name=os.path.basename(path),
        file_type=file_type,
    )
