from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple
from .utils import load_rules, norm_text

# Logical fields of a flag record that can come from a sheet column
FIELDS: Tuple[str, ...] = (
    "student_name",
    "date",
    "category",
    "year_group",
    "house",
    "form",
    "teacher",
    "reason",
    "subject",
    "points",
)

# A row is a header only if it names all three of these
SENTINEL_FIELDS: Tuple[str, ...] = ("student_name", "date", "category")

# Header labels as they appear in the exports, in priority order
DEFAULT_LABELS: Dict[str, Tuple[str, ...]] = {
    "student_name": ("pupil name", "student name", "student"),
    "date": ("date",),
    "category": ("category",),
    "year_group": ("year", "year group"),
    "house": ("house",),
    "form": ("form",),
    "teacher": ("teacher", "staff"),
    "reason": ("reward description", "reason", "description"),
    "subject": ("subject",),
    "points": ("points",),
}

ColumnMap = Dict[str, Optional[int]]

def header_labels(rules: Optional[Dict[str, Any]] = None) -> Dict[str, Tuple[str, ...]]:
    """
    Labels per field: defaults, with any field replaced by `rules["labels"][field]`.
    Rule values are normalized like header cells; empty lists are ignored.
    """
    if rules is None:
        rules = load_rules()
    labels = dict(DEFAULT_LABELS)
    custom = rules.get("labels") if isinstance(rules, dict) else None
    if isinstance(custom, dict):
        for fld, vals in custom.items():
            if fld not in labels:
                continue
            if isinstance(vals, str):
                vals = [vals]
            if not isinstance(vals, (list, tuple)):
                continue
            cleaned = tuple(t for t in (norm_text(v) for v in vals) if t)
            if cleaned:
                labels[fld] = cleaned
    return labels

def normalized_cells(row: Sequence[Any]) -> List[str]:
    return [norm_text(v) for v in row]

def is_header_row(cells: Sequence[str], labels: Dict[str, Tuple[str, ...]]) -> bool:
    # `cells` are already normalized
    present = set(cells)
    return all(any(lbl in present for lbl in labels[f]) for f in SENTINEL_FIELDS)

def resolve_column_map(cells: Sequence[str], labels: Dict[str, Tuple[str, ...]]) -> ColumnMap:
    """
    Field -> column index for one header row (None when the column is absent).
    For each field the first alias found wins, and for that alias its first column.
    """
    first_index: Dict[str, int] = {}
    for i, c in enumerate(cells):
        if c and c not in first_index:
            first_index[c] = i

    mapping: ColumnMap = {}
    for f in FIELDS:
        mapping[f] = next((first_index[lbl] for lbl in labels[f] if lbl in first_index), None)
    return mapping
