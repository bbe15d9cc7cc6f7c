"""
Loading of season settings from the data directory.

teams.yaml        list of team ids (or {'teams': [...]})
vacations.yaml    list of {name, start_date, end_date, is_active}
timeslots.csv     priority,venue,day_of_week,start_time,end_time
constraints.yaml  scheduling settings merged over get_default_constraints()
"""
import csv
import os

import yaml

from league.errors import InvalidInputError
from league.models import Timeslot, VacationPeriod
from league.slots import DEFAULT_SLOTS_PER_WEEK, DEFAULT_TIMESLOTS


def get_default_constraints():
    """Return default scheduling settings."""
    return {
        'slots_per_week': DEFAULT_SLOTS_PER_WEEK,
        'regular_rounds': 1,
        'playoff_rounds': 2,
        'start_date': None,
        'end_date': None,
        'allow_partial_calendar': False,
    }


def load_constraints(file_path):
    """Load constraints from YAML file, merging with defaults."""
    constraints = get_default_constraints()
    if not os.path.exists(file_path):
        return constraints
    with open(file_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if data:
        constraints.update(data)
    return constraints


def load_teams(file_path):
    """Load the list of team ids."""
    with open(file_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return []
    if isinstance(data, dict):
        data = data.get('teams', [])
    if not isinstance(data, list):
        raise InvalidInputError(f"{file_path} must contain a list of teams")
    return data


def load_vacations(file_path):
    """Load vacation periods; a missing file means no vacations."""
    if not os.path.exists(file_path):
        return []
    with open(file_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    vacations = []
    for entry in data or []:
        vacations.append(VacationPeriod(
            name=entry.get('name', 'vacation'),
            start_date=entry['start_date'],
            end_date=entry['end_date'],
            is_active=entry.get('is_active', True),
        ))
    return vacations


def load_timeslots(file_path):
    """Load ranked timeslots from CSV; falls back to the default ranking when absent."""
    if not os.path.exists(file_path):
        return list(DEFAULT_TIMESLOTS)
    timeslots = []
    with open(file_path, mode='r', encoding='utf-8') as file:
        reader = csv.DictReader(file)
        for row in reader:
            end_time = (row.get('end_time') or '').strip() or None
            timeslots.append(Timeslot(
                priority=int(row['priority']),
                venue=row['venue'].strip(),
                day_of_week=int(row['day_of_week']),
                start_time=row['start_time'].strip(),
                end_time=end_time,
            ))
    return timeslots
