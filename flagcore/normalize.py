from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
from .dates import resolve_timestamp
from .header_detect import ColumnMap, header_labels, is_header_row, normalized_cells, resolve_column_map
from .models import FlagRecord
from .utils import cell_text, to_points

logger = logging.getLogger(__name__)

# Used when the active header block has no column for the field
DEFAULTS: Dict[str, str] = {
    "year_group": "Unknown",
    "house": "None",
    "form": "N/A",
    "teacher": "Unknown",
    "reason": "",
    "category": "None",
    "subject": "",
}

def _cell(row: Sequence[Any], col: Optional[int]) -> Any:
    if col is None or col >= len(row):
        return None
    return row[col]

def _text(row: Sequence[Any], col: Optional[int], default: str = "") -> str:
    s = cell_text(_cell(row, col))
    return s if s else default

def _row_to_record(row: Sequence[Any], mapping: ColumnMap, labels: Dict[str, Tuple[str, ...]]) -> Optional[FlagRecord]:
    student = _text(row, mapping["student_name"])
    date_raw = _text(row, mapping["date"])

    # blank rows, student caption rows and partially recognized header echoes
    if not student or student.lower() in labels["student_name"]:
        return None
    if not date_raw or date_raw.lower() in labels["date"]:
        return None

    date_cell = _cell(row, mapping["date"])
    return FlagRecord(
        student_name=student,
        date=date_raw,
        timestamp=resolve_timestamp(date_cell),
        year_group=_text(row, mapping["year_group"], DEFAULTS["year_group"]),
        house=_text(row, mapping["house"], DEFAULTS["house"]),
        form=_text(row, mapping["form"], DEFAULTS["form"]),
        teacher=_text(row, mapping["teacher"], DEFAULTS["teacher"]),
        reason=_text(row, mapping["reason"], DEFAULTS["reason"]),
        category=_text(row, mapping["category"], DEFAULTS["category"]),
        subject=_text(row, mapping["subject"], DEFAULTS["subject"]),
        points=to_points(_cell(row, mapping["points"])) if mapping["points"] is not None else 0.0,
    )

def normalize_rows(
    rows: Sequence[Sequence[Any]],
    labels: Optional[Dict[str, Tuple[str, ...]]] = None,
) -> List[FlagRecord]:
    """
    Sheet rows -> flag records.

    Header rows may repeat anywhere in the sheet (grouped exports print one
    header per student). Each header row starts a new block with its own
    column order; rows before the first header are dropped. A sheet without
    any header row gives an empty list.
    """
    if labels is None:
        labels = header_labels()

    records: List[FlagRecord] = []
    mapping: Optional[ColumnMap] = None
    blocks = 0
    skipped = 0

    for i, row in enumerate(rows):
        row = list(row or [])
        cells = normalized_cells(row)
        if is_header_row(cells, labels):
            mapping = resolve_column_map(cells, labels)
            blocks += 1
            logger.debug("header block %d at row %d: %s", blocks, i + 1, mapping)
            continue

        if mapping is None:
            skipped += 1
            continue

        rec = _row_to_record(row, mapping, labels)
        if rec is None:
            skipped += 1
            continue
        records.append(rec)

    if blocks == 0:
        logger.info("no header row found in %d rows", len(rows))
    else:
        logger.info("read %d records from %d header blocks (%d rows skipped)", len(records), blocks, skipped)
    return records
