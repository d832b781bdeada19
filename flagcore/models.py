"""
Data model
==========

Each data row of a behaviour export becomes one `FlagRecord`. Records are
frozen: filters and aggregations select and count them, never edit them.

Aggregates (`ChartDataPoint`, `StudentHotspot`, `DashboardView`) are rebuilt
from the records on every filter change.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

@dataclass(frozen=True)
class FlagRecord:
    """One behavioural incident ("flag")."""
    student_name: str
    date: str
    # epoch milliseconds; 0 means the date could not be read
    timestamp: int = 0
    year_group: str = "Unknown"
    house: str = "None"
    form: str = "N/A"
    teacher: str = "Unknown"
    reason: str = ""
    category: str = "None"
    subject: str = ""
    points: float = 0.0

@dataclass(frozen=True)
class ChartDataPoint:
    name: str
    value: int

@dataclass(frozen=True)
class StudentHotspot:
    name: str
    count: int
    main_reason: str
    summary: str

@dataclass(frozen=True)
class DashboardView:
    """Everything the dashboard shows for one (year, date range) selection."""
    records: List[FlagRecord] = field(default_factory=list)
    teachers: List[ChartDataPoint] = field(default_factory=list)
    categories: List[ChartDataPoint] = field(default_factory=list)
    year_groups: List[ChartDataPoint] = field(default_factory=list)
    days: List[ChartDataPoint] = field(default_factory=list)
    weekly: List[ChartDataPoint] = field(default_factory=list)
    hotspots: List[StudentHotspot] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def top_teacher(self) -> str:
        return self.teachers[0].name if self.teachers else "N/A"

    @property
    def busiest_day(self) -> str:
        # first day strictly above the running max; 'N/A' when nothing dated
        best, best_value = "N/A", 0
        for p in self.days:
            if p.value > best_value:
                best, best_value = p.name, p.value
        return best
