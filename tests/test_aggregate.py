from flagcore.aggregate import (
    DAY_ORDER,
    build_dashboard,
    day_histogram,
    fallback_summary,
    filter_records,
    hotspots,
    top_n,
    top_n_sizes,
    weekly_series,
    year_options,
)
from conftest import flag, ms


def test_empty_input():
    view = build_dashboard([])
    assert view.total == 0
    assert view.teachers == []
    assert view.categories == []
    assert view.weekly == []
    assert view.hotspots == []
    assert [p.name for p in view.days] == DAY_ORDER
    assert all(p.value == 0 for p in view.days)
    assert view.top_teacher == "N/A"
    assert view.busiest_day == "N/A"


def test_year_filter(records):
    assert len(filter_records(records, "Year 8")) == 2
    assert len(filter_records(records, "Overall")) == len(records)
    assert len(filter_records(records, None)) == len(records)
    assert filter_records(records, "Year 12") == []


def test_undated_records_only_without_start(records):
    assert any(r.timestamp == 0 for r in filter_records(records, end=ms(2025, 12, 31)))
    selected = filter_records(records, start=ms(2025, 9, 4))
    assert all(r.timestamp >= ms(2025, 9, 4) for r in selected)
    assert len(selected) == 4


def test_range_is_inclusive(records):
    selected = filter_records(records, start=ms(2025, 9, 3), end=ms(2025, 9, 16))
    assert [r.date for r in selected] == ["03/09/2025", "04/09/2025", "16/09/2025"]


def test_top_n_is_bounded_and_sorted():
    values = ["a", "b", "b", "c", "c", "c", "d", "e", "f", "g", "h", "i"]
    points = top_n(values, 6)
    assert len(points) == 6
    counts = [p.value for p in points]
    assert counts == sorted(counts, reverse=True)
    assert (points[0].name, points[0].value) == ("c", 3)
    assert (points[1].name, points[1].value) == ("b", 2)
    # ties keep first-seen order
    assert [p.name for p in points[2:]] == ["a", "d", "e", "f"]


def test_day_histogram(records):
    days = day_histogram(records)
    assert [p.name for p in days] == DAY_ORDER
    by_name = {p.name: p.value for p in days}
    # 3 Sep 2025 Wednesday, 4 Sep Thursday, 1 Dec Monday, 16 Sep Tuesday, 20 Oct Monday
    assert by_name == {"Monday": 2, "Tuesday": 1, "Wednesday": 1, "Thursday": 1, "Friday": 0, "Saturday": 0, "Sunday": 0}


def test_weekly_series_first_seen_order():
    recs = [
        flag("A", timestamp=ms(2025, 9, 16)),
        flag("B", timestamp=ms(2025, 9, 3)),
        flag("C", timestamp=ms(2025, 9, 7)),  # Sunday belongs to the week of Monday 1 Sep
        flag("D", timestamp=ms(2025, 9, 15)),
        flag("E", timestamp=0),
    ]
    weekly = weekly_series(recs)
    assert [(p.name, p.value) for p in weekly] == [("15 Sep 2025", 2), ("01 Sep 2025", 2)]


def test_hotspots_ranking_and_fallback(records):
    spots = hotspots(records)
    assert [(h.name, h.count) for h in spots] == [("Abbott, Amelia", 3), ("Abe, Sebastian", 2), ("Cole, Harry", 1)]
    amelia = spots[0]
    assert amelia.main_reason == "Equipment"
    assert "Equipment" in amelia.summary
    assert "2 different teachers" in amelia.summary
    harry = spots[2]
    assert "1 different teacher." in harry.summary
    assert "teachers" not in harry.summary


def test_hotspot_main_reason_tie_uses_first_category():
    recs = [flag("A", category="Uniform"), flag("A", category="Homework"), flag("A", category="Homework"), flag("A", category="Uniform")]
    assert hotspots(recs)[0].main_reason == "Uniform"


def test_hotspots_top_six():
    recs = [flag(f"Student {i}") for i in range(10) for _ in range(i + 1)]
    spots = hotspots(recs)
    assert len(spots) == 6
    assert spots[0].name == "Student 9"


def test_hotspot_summary_matches_normalized_names(records):
    summaries = {"amelia abbott": "wrong order", "Abbott Amelia": "Needs equipment support."}
    spots = hotspots(records, summaries)
    assert spots[0].summary == "Needs equipment support."
    assert spots[1].summary == fallback_summary("Classroom behaviour", 2)


def test_empty_summary_text_falls_back(records):
    spots = hotspots(records, {"abbottamelia": ""})
    assert spots[0].summary.startswith("Demonstrates a pattern")


def test_fallback_summary_wording():
    text = fallback_summary("Equipment", 2)
    assert text == (
        "Demonstrates a pattern of incidents related primarily to Equipment across 2 different teachers. "
        "Strategic support should focus on equipment engagement."
    )
    assert "1 different teacher." in fallback_summary("Uniform", 1)


def test_dashboard_does_not_mutate_input(records):
    before = list(records)
    first = build_dashboard(records, active_year="Year 7")
    second = build_dashboard(records, active_year="Year 7")
    assert records == before
    assert first == second
    assert first.total == 3
    assert first.top_teacher == "JIQU"
    assert first.busiest_day == "Monday"


def test_dashboard_top_n_from_rules(records):
    view = build_dashboard(records, rules={"top_n": {"teacher": 1, "hotspots": 2, "category": "x"}})
    assert len(view.teachers) == 1
    assert len(view.hotspots) == 2
    assert top_n_sizes({})["category"] == 6


def test_year_options(records):
    assert year_options(records) == ["Overall", "Year 7", "Year 8", "Year 9"]
    assert year_options([]) == ["Overall"]


def test_names_without_latin_letters_never_share_a_summary():
    recs = [flag("李雷", teacher="JWI"), flag("王芳", teacher="JWI"), flag("1234", teacher="JWI")]
    spots = hotspots(recs, {"张伟": "note for another pupil", "": "blank key"})
    assert [h.summary for h in spots] == [fallback_summary("Uniform", 1)] * 3
