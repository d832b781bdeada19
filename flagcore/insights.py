"""
AI analysis response
====================

The narrative analysis (executive summary, year-group deep dives, per-student
"frequent flyer" notes) comes from an external AI service the host calls.
This module only reads what comes back and prepares what goes out:

- `parse_analysis` turns the service's JSON into `AnalysisSummary`
- `build_summary_lookup` keys student notes by normalized name
- `year_insight_for` picks the deep dive for the selected year group
- `collaborator_digest` is the bounded record digest sent to the service
"""

from __future__ import annotations
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import pandas as pd
from .aggregate import OVERALL
from .models import FlagRecord, StudentHotspot
from .utils import normalize_student_key

logger = logging.getLogger(__name__)

DIGEST_HEADERS = "Date|DayOfWeek|Student|Teacher|YearGroup|Category|Reason"

class AnalysisFormatError(ValueError):
    """The AI response is not a JSON object."""

@dataclass(frozen=True)
class YearGroupAnalysis:
    year: str
    insight: str = ""
    priority: str = ""
    interventions: List[str] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class AnalysisSummary:
    ai_insights: str = ""
    most_common_reason: str = ""
    interventions: List[str] = field(default_factory=list)
    temporal_spikes: List[str] = field(default_factory=list)
    year_insights: List[YearGroupAnalysis] = field(default_factory=list)
    hotspot_students: List[StudentHotspot] = field(default_factory=list)
    # headline values as the service reported them; the dashboard recomputes its own
    total_flags: int = 0
    top_teacher: str = ""
    top_year_group: str = ""
    busiest_day: str = ""
# =========================

# Parsing (tolerant: missing keys / wrong types become empty values)
# =========================
def _str(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()

def _str_list(v: Any) -> List[str]:
    if isinstance(v, str):
        return [v.strip()] if v.strip() else []
    if not isinstance(v, (list, tuple)):
        return []
    return [s for s in (_str(x) for x in v) if s]

def _int(v: Any) -> int:
    try:
        return int(float(v))
    except (TypeError, ValueError, OverflowError):
        return 0

def _dicts(v: Any) -> List[Dict[str, Any]]:
    if not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, dict)]

def _year(d: Dict[str, Any]) -> YearGroupAnalysis:
    return YearGroupAnalysis(
        year=_str(d.get("year")),
        insight=_str(d.get("insight")),
        priority=_str(d.get("priority")),
        interventions=_str_list(d.get("interventions")),
        alerts=_str_list(d.get("alerts")),
    )

def _student(d: Dict[str, Any]) -> StudentHotspot:
    return StudentHotspot(
        name=_str(d.get("name")),
        count=_int(d.get("count")),
        main_reason=_str(d.get("mainReason", d.get("main_reason"))),
        summary=_str(d.get("summary")),
    )

def parse_analysis(payload: Any) -> AnalysisSummary:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload.strip() or "{}")
        except json.JSONDecodeError as e:
            raise AnalysisFormatError(f"AI analysis is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise AnalysisFormatError("AI analysis must be a JSON object.")

    hotspots = payload.get("hotspots")
    students = hotspots.get("students") if isinstance(hotspots, dict) else hotspots

    summary = AnalysisSummary(
        ai_insights=_str(payload.get("aiInsights")),
        most_common_reason=_str(payload.get("mostCommonReason")),
        interventions=_str_list(payload.get("interventions")),
        temporal_spikes=_str_list(payload.get("temporalSpikes")),
        year_insights=[_year(d) for d in _dicts(payload.get("yearInsights")) if _str(d.get("year"))],
        hotspot_students=[_student(d) for d in _dicts(students) if _str(d.get("name"))],
        total_flags=_int(payload.get("totalFlags")),
        top_teacher=_str(payload.get("topTeacher")),
        top_year_group=_str(payload.get("topYearGroup")),
        busiest_day=_str(payload.get("busiestDay")),
    )
    logger.debug(
        "parsed AI analysis: %d year groups, %d students",
        len(summary.year_insights), len(summary.hotspot_students),
    )
    return summary
# =========================

# Merging back into the dashboard
# =========================
def build_summary_lookup(students: Sequence[StudentHotspot]) -> Dict[str, str]:
    # normalized name -> note; later entries overwrite earlier ones
    lookup: Dict[str, str] = {}
    for s in students:
        key = normalize_student_key(s.name)
        if s.summary and key:
            lookup[key] = s.summary
    return lookup

def year_insight_for(analysis: AnalysisSummary, active_year: Optional[str]) -> Optional[YearGroupAnalysis]:
    if not active_year or active_year == OVERALL:
        return None
    return next((y for y in analysis.year_insights if y.year == active_year), None)

def overall_alerts(analysis: AnalysisSummary) -> List[str]:
    # first alert of every year group, for the overall view
    return [y.alerts[0] for y in analysis.year_insights if y.alerts]
# =========================

# Digest sent to the service
# =========================
def _weekday(ms: int) -> str:
    if not ms:
        return "Unknown"
    ts = pd.to_datetime(ms, unit="ms", utc=True, errors="coerce")
    return "Unknown" if pd.isna(ts) else ts.day_name()

def collaborator_digest(
    records: Sequence[FlagRecord],
    max_rows: int = 1500,
    top_students: int = 15,
) -> Dict[str, Any]:
    """
    What the AI service is given: the first `max_rows` records as
    pipe-delimited lines, the most flagged students and the year groups.
    """
    counts = Counter(r.student_name for r in records)
    lines = [
        "|".join([r.date, _weekday(r.timestamp), r.student_name, r.teacher, r.year_group, r.category, r.reason])
        for r in records[:max_rows]
    ]
    return {
        "headers": DIGEST_HEADERS,
        "rows": "\n".join(lines),
        "top_students": [name for name, _ in counts.most_common(top_students)],
        "year_groups": sorted({r.year_group for r in records if r.year_group}),
    }
