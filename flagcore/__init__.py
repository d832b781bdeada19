"""
This package contains:
- reading the first sheet of a behaviour export (CSV/XLSX)
- finding repeated header blocks and normalizing rows into flag records
- resolving day/month/year dates
- aggregation for the dashboard (histograms, weekly series, frequent flyers)
- reading the AI analysis response and merging its student notes
"""
from .models import FlagRecord, ChartDataPoint, StudentHotspot, DashboardView
from .ingest import load_sheet_rows, load_uploaded_rows
from .normalize import normalize_rows
from .dates import resolve_timestamp
from .aggregate import (build_dashboard, filter_records, top_n, day_histogram, weekly_series, hotspots, year_options)
from .insights import AnalysisFormatError, AnalysisSummary, parse_analysis, build_summary_lookup, year_insight_for

__version__ = "0.1.0"

__all__ = [
    "FlagRecord",
    "ChartDataPoint",
    "StudentHotspot",
    "DashboardView",
    "load_sheet_rows",
    "load_uploaded_rows",
    "normalize_rows",
    "resolve_timestamp",
    "build_dashboard",
    "filter_records",
    "top_n",
    "day_histogram",
    "weekly_series",
    "hotspots",
    "year_options",
    "AnalysisFormatError",
    "AnalysisSummary",
    "parse_analysis",
    "build_summary_lookup",
    "year_insight_for",
]
