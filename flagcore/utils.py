from __future__ import annotations
import os
import re
import json
import math
import datetime as dt
from pathlib import Path
from typing import Any, Dict

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

def load_json(path: Path, default: Any):
    # missing or hand-edited rules files must not stop an upload
    if not path.is_file():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return default

def rules_path() -> Path:
    override = os.environ.get("FLAGCORE_RULES")
    if override:
        return Path(override)
    return DEFAULT_DATA_DIR / "rules.json"

def load_rules() -> Dict[str, Any]:
    rules = load_json(rules_path(), {})
    return rules if isinstance(rules, dict) else {}

_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP variants
_NUM_PREFIX_RE = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)")

def cell_text(v: Any) -> str:
    """
    Raw cell -> display text:
    - None / NaN / NaT / 'nan' -> ''
    - integral floats without '.0'
    - date/datetime -> dd/mm/yyyy
    """
    if v is None:
        return ""
    if isinstance(v, float):
        if math.isnan(v):
            return ""
        if v.is_integer():
            return str(int(v))
    if isinstance(v, (dt.datetime, dt.date)):
        try:
            return v.strftime("%d/%m/%Y")
        except ValueError:
            # pandas NaT
            return ""
    s = str(v)
    if s.strip().lower() in ("nan", "nat"):
        return ""
    return s.strip()

def norm_text(s: Any) -> str:
    """
    Header-cell normalization:
    - BOM / non-breaking spaces
    - lower
    - collapse whitespace
    """
    if s is None:
        return ""
    s = cell_text(s)
    s = s.replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s.lower()

def normalize_student_key(s: Any) -> str:
    # key for joining student names across sources: only a-z survive
    return re.sub(r"[^a-z]", "", str(s or "").lower())

def to_points(x: Any) -> float:
    # leading-number parse, like a lenient spreadsheet import; never raises
    if isinstance(x, bool):
        return 0.0
    if isinstance(x, (int, float)):
        return 0.0 if isinstance(x, float) and math.isnan(x) else float(x)
    m = _NUM_PREFIX_RE.match(cell_text(x))
    if not m:
        return 0.0
    try:
        return float(m.group(0))
    except ValueError:
        return 0.0
