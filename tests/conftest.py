import datetime as dt
import pytest
from flagcore.models import FlagRecord

CANONICAL_HEADER = ["Pupil Name", "House", "Form", "Year", "Category", "Points", "Date", "Reward Description", "Teacher", "Subject"]
REORDERED_HEADER = ["Date", "Category", "Pupil Name", "Teacher", "Year", "Points", "Subject", "House", "Form", "Reward Description"]


def ms(year, month, day):
    return int(dt.datetime(year, month, day, tzinfo=dt.timezone.utc).timestamp() * 1000)


@pytest.fixture
def grouped_rows():
    """Two student sections, each with its own header row and column order."""
    return [
        ["Rewards Report"],
        [],
        ["Abbott, Amelia"],
        CANONICAL_HEADER,
        ["Abbott, Amelia", "Izanami", "I - Wilkie", "Year 7", "Uniform", "1", "03/09/2025", "In sports shoes today.", "JWI", ""],
        ["", "", "", "", "", "", "", "", "", ""],
        ["Abe, Sebastian"],
        REORDERED_HEADER,
        ["16/09/2025", "Classroom behaviour", "Abe, Sebastian", "JIQU", "Year 8", "1", "", "Amaterasu", "A - Que", "Not sitting properly"],
    ]


def flag(name, date="", timestamp=0, teacher="T1", category="Uniform", year="Year 7"):
    return FlagRecord(student_name=name, date=date, timestamp=timestamp, teacher=teacher, category=category, year_group=year)


@pytest.fixture
def records():
    return [
        flag("Abbott, Amelia", "03/09/2025", ms(2025, 9, 3), teacher="JWI", category="Uniform"),
        flag("Abbott, Amelia", "04/09/2025", ms(2025, 9, 4), teacher="JIQU", category="Equipment"),
        flag("Abbott, Amelia", "01/12/2025", ms(2025, 12, 1), teacher="JIQU", category="Equipment"),
        flag("Abe, Sebastian", "16/09/2025", ms(2025, 9, 16), teacher="JIQU", category="Classroom behaviour", year="Year 8"),
        flag("Abe, Sebastian", "20/10/2025", ms(2025, 10, 20), teacher="APR", category="Homework", year="Year 8"),
        flag("Cole, Harry", "N/A", 0, teacher="APR", category="Homework", year="Year 9"),
    ]
