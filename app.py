from __future__ import annotations
import logging
import datetime as dt
import pandas as pd
import streamlit as st
from flagcore.ingest import load_uploaded_rows
from flagcore.normalize import normalize_rows
from flagcore.aggregate import build_dashboard, year_options, OVERALL
from flagcore.insights import AnalysisFormatError, AnalysisSummary, parse_analysis, build_summary_lookup, year_insight_for, overall_alerts
from flagcore.utils import load_rules

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

RULES = load_rules()
NO_DATA_MSG = "Could not find flag data. Ensure headers like 'Pupil Name' and 'Date' are present."
st.set_page_config(page_title="School Insight Engine", layout="wide")
st.title("School Insight Engine: behaviour flags")
# =========================

# Helpers
# =========================
def _day_start_ms(d: dt.date | None) -> int | None:
    if d is None:
        return None
    return int(dt.datetime(d.year, d.month, d.day, tzinfo=dt.timezone.utc).timestamp() * 1000)

def _day_end_ms(d: dt.date | None) -> int | None:
    start = _day_start_ms(d)
    return None if start is None else start + 86_400_000 - 1

def _chart_frame(points) -> pd.DataFrame:
    return pd.DataFrame([{"name": p.name, "value": p.value} for p in points]).set_index("name") if points else pd.DataFrame()

def _load_analysis(file) -> AnalysisSummary:
    # the AI service runs outside this app; its saved JSON response is optional
    if not file:
        return AnalysisSummary()
    try:
        return parse_analysis(file.getvalue())
    except AnalysisFormatError as e:
        st.warning(f"AI analysis ignored: {e}")
        return AnalysisSummary()
# =========================

# Upload
# =========================
upload = st.file_uploader("Behaviour export (.xlsx or .csv)", type=["xlsx", "xlsm", "csv"])
analysis_file = st.file_uploader("AI analysis response (.json, optional)", type=["json"])

if not upload:
    st.info("Upload the 'Flags' report. Headers like Pupil Name, House, Date, Teacher, Subject are found anywhere in the sheet.")
    st.stop()

try:
    records = normalize_rows(load_uploaded_rows(upload))
except ValueError as e:
    st.error(str(e))
    st.stop()

if not records:
    st.error(NO_DATA_MSG)
    st.stop()

analysis = _load_analysis(analysis_file)
summaries = build_summary_lookup(analysis.hotspot_students)
# =========================

# Filters
# =========================
c1, c2, c3 = st.columns(3)
with c1:
    active_year = st.selectbox("Year group", year_options(records))
with c2:
    start_date = st.date_input("From", value=None)
with c3:
    end_date = st.date_input("To", value=None)

view = build_dashboard(
    records,
    active_year=active_year,
    start=_day_start_ms(start_date),
    end=_day_end_ms(end_date),
    summaries=summaries,
    rules=RULES,
)
# =========================

# Dashboard
# =========================
m1, m2, m3 = st.columns(3)
m1.metric(f"Total Flags ({active_year})", view.total)
m2.metric("Top Issuer", view.top_teacher)
m3.metric("Peak Trend", view.busiest_day)

if analysis.ai_insights:
    st.subheader("Executive summary")
    st.write(analysis.ai_insights)

year_view = year_insight_for(analysis, active_year)
alerts = overall_alerts(analysis) if active_year == OVERALL else (year_view.alerts if year_view else [])
if year_view:
    st.subheader(f"{active_year}: {year_view.priority}")
    st.write(year_view.insight)
    for item in year_view.interventions:
        st.markdown(f"- {item}")
if alerts:
    with st.expander("Leadership alerts", expanded=True):
        for a in alerts:
            st.markdown(f"- {a}")
if analysis.temporal_spikes:
    with st.expander("Temporal spikes"):
        for s in analysis.temporal_spikes:
            st.markdown(f"- {s}")

st.subheader("Frequent flyers")
st.dataframe(
    pd.DataFrame([
        {"Student": h.name, "Flags": h.count, "Main category": h.main_reason, "Summary": h.summary}
        for h in view.hotspots
    ]),
    use_container_width=True,
)

left, right = st.columns(2)
with left:
    st.subheader("Flags per week")
    st.bar_chart(_chart_frame(view.weekly))
    st.subheader("Day of week")
    st.bar_chart(_chart_frame(view.days))
with right:
    st.subheader("Categories")
    st.bar_chart(_chart_frame(view.categories))
    st.subheader("Teachers")
    st.bar_chart(_chart_frame(view.teachers))
st.caption(f"Faculty engagement metrics filtered for {active_year}.")
