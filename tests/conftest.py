"""
Shared pytest fixtures for league scheduler tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset
"""
import datetime
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.models import VacationPeriod, Timeslot
from league.slots import PriorityOrder


@pytest.fixture
def client(temp_data_dir):
    """Create a test client writing to a temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app's DATA_DIR at a temporary directory with season settings."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "constraints.yaml").write_text(
        "slots_per_week: 7\n"
        "regular_rounds: 1\n"
        "playoff_rounds: 2\n"
    )
    (data_dir / "vacations.yaml").write_text(
        "- name: Christmas\n"
        "  start_date: 2025-12-22\n"
        "  end_date: 2026-01-04\n"
        "  is_active: true\n"
    )
    (data_dir / "timeslots.csv").write_text(
        "priority,venue,day_of_week,start_time,end_time\n"
        "1,Main Hall,1,20:00,21:00\n"
        "2,Side Hall,1,20:00,21:00\n"
        "3,Main Hall,2,19:30,20:30\n"
        "4,Main Hall,1,19:00,20:00\n"
        "5,Side Hall,1,19:00,20:00\n"
        "6,Main Hall,2,18:30,19:30\n"
        "7,Side Hall,2,18:30,19:30\n"
    )

    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return str(data_dir)


@pytest.fixture
def season_start():
    """A Monday."""
    return datetime.date(2025, 9, 1)


@pytest.fixture
def christmas():
    """Two-week vacation covering the Mondays 2025-12-22 and 2025-12-29."""
    return VacationPeriod(name="Christmas", start_date="2025-12-22", end_date="2026-01-04")


@pytest.fixture
def eight_teams():
    return list(range(1, 9))


@pytest.fixture
def sixteen_teams():
    return list(range(101, 117))


@pytest.fixture
def priority_order():
    """Two venues, Monday and Tuesday evenings."""
    return PriorityOrder([
        Timeslot(1, "Main Hall", 1, "20:00"),
        Timeslot(2, "Side Hall", 1, "20:00"),
        Timeslot(3, "Main Hall", 2, "19:30"),
    ])


@pytest.fixture
def cup_weeks():
    """Five consecutive Mondays in early 2026."""
    start = datetime.date(2026, 2, 2)
    return [start + datetime.timedelta(weeks=i) for i in range(5)]
