from __future__ import annotations
import csv
import logging
from collections import Counter
from io import BytesIO, StringIO
from typing import Any, List
import pandas as pd
from openpyxl import load_workbook

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
# =========================

# Excel: first worksheet as a matrix of raw values
# =========================
def _first_sheet_to_matrix(wb_bytes: bytes) -> List[List[Any]]:
    wb = load_workbook(BytesIO(wb_bytes), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = []
        for r in ws.iter_rows(values_only=True):
            rows.append(list(r))
        return rows
    finally:
        wb.close()
# =========================

# CSV: tolerant read from bytes
# =========================
DELIMITERS = ",;\t|"


def _guess_delimiter(sample_text: str) -> str:
    # English exports use ','; European Excel saves ';'; some MIS tools tab
    try:
        return csv.Sniffer().sniff(sample_text, delimiters=DELIMITERS).delimiter or ","
    except csv.Error:
        pass

    # Sniffer gives up on title and caption rows; pick the delimiter that
    # splits the most lines into the same (widest common) number of fields
    lines = [ln for ln in sample_text.splitlines() if ln.strip()][:50]
    best, best_rows = ",", 0
    for d in DELIMITERS:
        widths = Counter(ln.count(d) for ln in lines if d in ln)
        if not widths:
            continue
        _, rows = max(widths.items(), key=lambda kv: (kv[1], kv[0]))
        if rows > best_rows:
            best, best_rows = d, rows
    return best


def _column_count(text: str, delim: str) -> int:
    # rows are ragged (title rows, captions), so size the frame by the widest row
    return max((len(r) for r in csv.reader(StringIO(text), delimiter=delim)), default=0)


def _read_text(text: str, delim: str) -> pd.DataFrame:
    ncols = _column_count(text, delim)
    if ncols == 0:
        return pd.DataFrame()
    return pd.read_csv(
        StringIO(text),
        header=None,
        names=list(range(ncols)),
        sep=delim,
        engine="python",
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )


def _read_csv_bytes(data: bytes) -> pd.DataFrame:
    # header=None: header rows repeat inside the sheet and are found later
    encodings = ["utf-8-sig", "utf-8", "cp1252"]
    last_err: Exception | None = None

    for enc in encodings:
        try:
            text = data.decode(enc)
            return _read_text(text, _guess_delimiter(text[:65536]))
        except (UnicodeDecodeError, pd.errors.ParserError, csv.Error) as e:
            logger.warning("CSV read with %s failed: %s", enc, e)
            last_err = e
            continue

    text = data.decode("utf-8", errors="replace")
    try:
        return _read_text(text, _guess_delimiter(text[:65536]))
    except (pd.errors.ParserError, csv.Error) as e:
        raise last_err or e


def _frame_to_matrix(df: pd.DataFrame) -> List[List[Any]]:
    return df.astype(object).where(df.notna(), None).values.tolist()
# =========================

# Main: upload -> rows of the first sheet
# =========================
def load_sheet_rows(name: str, data: bytes) -> List[List[Any]]:
    """
    Rows of raw cell values from the first sheet of an upload.

    - CSV is read without a header row, every cell as text
    - Excel is read with openpyxl (cached values, no formulas)
    Only the first sheet is used.
    """
    lower = name.lower()
    if lower.endswith(".csv"):
        rows = _frame_to_matrix(_read_csv_bytes(data))
    elif lower.endswith(EXCEL_EXTENSIONS):
        rows = _first_sheet_to_matrix(data)
    else:
        raise ValueError(f"Unsupported file type: {name}. Upload a .xlsx or .csv export.")

    logger.info("loaded %d rows from %s", len(rows), name)
    return rows


def load_uploaded_rows(upload) -> List[List[Any]]:
    # Streamlit UploadedFile (or anything with .name / .getvalue())
    return load_sheet_rows(upload.name, upload.getvalue())
