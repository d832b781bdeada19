"""
Aggregation engine
==================

Pure functions from a list of `FlagRecord` to dashboard aggregates.
Nothing here mutates the records or keeps state between calls, so the
dashboard simply recomputes everything when the year or date filter changes.

Ordering rules:
- top-N lists sort by count, ties keep first-seen order
- the day histogram always has Monday..Sunday
- weekly buckets keep first-seen order (not chronological)
"""

from __future__ import annotations
from dataclasses import asdict, fields
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import pandas as pd
from .models import ChartDataPoint, DashboardView, FlagRecord, StudentHotspot
from .utils import load_rules, normalize_student_key

OVERALL = "Overall"
DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WEEK_LABEL_FORMAT = "%d %b %Y"

DEFAULT_TOP_N = {
    "teacher": 8,
    "category": 6,
    "year_group": 6,
    "hotspots": 6,
}

_COLUMNS = [f.name for f in fields(FlagRecord)]

def records_frame(records: Sequence[FlagRecord]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in records], columns=_COLUMNS)

def top_n_sizes(rules: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
    if rules is None:
        rules = load_rules()
    sizes = dict(DEFAULT_TOP_N)
    custom = rules.get("top_n") if isinstance(rules, dict) else None
    if isinstance(custom, dict):
        for k, v in custom.items():
            if k in sizes and isinstance(v, int) and not isinstance(v, bool) and v > 0:
                sizes[k] = v
    return sizes
# =========================

# Filtering
# =========================
def year_options(records: Iterable[FlagRecord]) -> List[str]:
    years = {r.year_group for r in records if r.year_group}
    return [OVERALL] + sorted(years)

def filter_records(
    records: Iterable[FlagRecord],
    active_year: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> List[FlagRecord]:
    """
    Year-group filter (None / 'Overall' = all) plus an inclusive timestamp range.
    The lower bound defaults to 0, so undated records (timestamp 0) only
    survive while no start date is set.
    """
    lo = start or 0
    out = []
    for r in records:
        if active_year and active_year != OVERALL and r.year_group != active_year:
            continue
        if r.timestamp < lo:
            continue
        if end is not None and r.timestamp > end:
            continue
        out.append(r)
    return out
# =========================

# Histograms
# =========================
def top_n(values: Iterable[str], n: int) -> List[ChartDataPoint]:
    s = pd.Series(list(values), dtype=object)
    if s.empty:
        return []
    counts = s.groupby(s, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable").head(n)
    return [ChartDataPoint(name=str(k), value=int(v)) for k, v in counts.items()]

def _dated(records: Iterable[FlagRecord]) -> pd.Series:
    # undated records would otherwise all land on Thursday 1 Jan 1970
    ms = pd.Series([r.timestamp for r in records if r.timestamp], dtype="int64")
    # far-off years fall outside what pandas can hold and are dropped too
    return pd.to_datetime(ms, unit="ms", utc=True, errors="coerce").dropna()

def day_histogram(records: Iterable[FlagRecord]) -> List[ChartDataPoint]:
    ts = _dated(records)
    counts = ts.dt.day_name().value_counts() if not ts.empty else pd.Series(dtype="int64")
    return [ChartDataPoint(name=d, value=int(counts.get(d, 0))) for d in DAY_ORDER]

def weekly_series(records: Iterable[FlagRecord]) -> List[ChartDataPoint]:
    """One point per week, labelled by the week's Monday, in first-seen order."""
    ts = _dated(records)
    if ts.empty:
        return []
    monday = (ts - pd.to_timedelta(ts.dt.weekday, unit="D")).dt.normalize()
    labels = monday.dt.strftime(WEEK_LABEL_FORMAT)
    counts = labels.groupby(labels, sort=False).size()
    return [ChartDataPoint(name=str(k), value=int(v)) for k, v in counts.items()]
# =========================

# Hotspots ("frequent flyers")
# =========================
def fallback_summary(main_reason: str, teacher_count: int) -> str:
    noun = "teacher" if teacher_count == 1 else "teachers"
    return (
        f"Demonstrates a pattern of incidents related primarily to {main_reason} "
        f"across {teacher_count} different {noun}. "
        f"Strategic support should focus on {main_reason.lower()} engagement."
    )

def hotspots(
    records: Sequence[FlagRecord],
    summaries: Optional[Mapping[str, str]] = None,
    n: int = DEFAULT_TOP_N["hotspots"],
) -> List[StudentHotspot]:
    """
    Top students by flag count.

    `summaries` maps student names to narrative text; keys are compared after
    `normalize_student_key`, so raw or pre-normalized names both work. When two keys
    normalize alike the later one wins. Students without a narrative get
    `fallback_summary`.
    """
    df = records_frame(records)
    if df.empty:
        return []

    lookup = {}
    for k, v in (summaries or {}).items():
        key = normalize_student_key(k)
        # names with no latin letters have no key and never match
        if v and key:
            lookup[key] = v

    by_student = df.groupby("student_name", sort=False)
    counts = by_student.size().sort_values(ascending=False, kind="stable").head(n)
    teacher_counts = by_student["teacher"].nunique()
    # first category (in first-seen order) with the highest count per student
    main = df.groupby(["student_name", "category"], sort=False).size()
    main_reason = {student: cat for student, cat in main.groupby(level=0, sort=False).idxmax().tolist()}

    out = []
    for name, count in counts.items():
        reason = str(main_reason.get(name, "Unknown"))
        key = normalize_student_key(name)
        summary = (lookup.get(key) if key else None) or fallback_summary(reason, int(teacher_counts[name]))
        out.append(StudentHotspot(name=str(name), count=int(count), main_reason=reason, summary=summary))
    return out
# =========================

# Everything for one dashboard selection
# =========================
def build_dashboard(
    records: Sequence[FlagRecord],
    active_year: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
    summaries: Optional[Mapping[str, str]] = None,
    rules: Optional[Dict[str, Any]] = None,
) -> DashboardView:
    sizes = top_n_sizes(rules)
    selected = filter_records(records, active_year, start, end)
    return DashboardView(
        records=selected,
        teachers=top_n((r.teacher for r in selected), sizes["teacher"]),
        categories=top_n((r.category for r in selected), sizes["category"]),
        year_groups=top_n((r.year_group for r in selected), sizes["year_group"]),
        days=day_histogram(selected),
        weekly=weekly_series(selected),
        hotspots=hotspots(selected, summaries, sizes["hotspots"]),
    )
