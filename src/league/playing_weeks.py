"""
Calendar builder: turns a date range into the ordered list of playing weeks.

A playing week is identified by its Monday. Weeks falling inside an active
vacation period, or already claimed by another competition (cup, earlier
league matches), are skipped.
"""
import datetime
import logging
import math
from typing import Iterable, List, Optional, Tuple

from league.errors import InvalidInputError
from league.models import VacationPeriod, to_date

logger = logging.getLogger(__name__)

ONE_WEEK = datetime.timedelta(days=7)


def monday_of(value) -> datetime.date:
    """Return the Monday on or before the given day."""
    day = to_date(value)
    return day - datetime.timedelta(days=day.weekday())


def weeks_needed(match_count: int, slots_per_week: int, matchdays: int = 0,
                 max_per_week: Optional[int] = None) -> int:
    """
    Minimum number of playing weeks for match_count matches.

    A team plays at most once a week, so a week holds at most max_per_week
    matches (half the teams) however many slots it has, and a season needs at
    least one week per matchday.
    """
    if slots_per_week < 1:
        raise InvalidInputError("slots_per_week must be at least 1")
    per_week = min(slots_per_week, max_per_week) if max_per_week else slots_per_week
    return max(math.ceil(match_count / per_week), matchdays)


def is_in_vacation(day: datetime.date, vacations: Iterable[VacationPeriod]) -> bool:
    """True if day falls inside any active vacation (boundaries inclusive)."""
    return any(vacation.contains(day) for vacation in vacations)


def _coerce_vacations(vacations) -> List[VacationPeriod]:
    result = []
    for vacation in vacations or []:
        if isinstance(vacation, VacationPeriod):
            result.append(vacation)
        else:
            # Plain dicts as returned by the season-settings provider
            result.append(VacationPeriod(
                name=vacation.get('name', 'vacation'),
                start_date=vacation['start_date'],
                end_date=vacation['end_date'],
                is_active=vacation.get('is_active', True),
            ))
    return result


def _is_playable(week: datetime.date, vacations, excluded_mondays) -> bool:
    if is_in_vacation(week, vacations):
        return False
    return week not in excluded_mondays


def build_playing_weeks(start_date, end_date, vacations=None, excluded_dates=(),
                        weeks_needed: Optional[int] = None) -> Tuple[List[datetime.date], Optional[str]]:
    """
    Build the ordered list of playing weeks between start_date and end_date.

    Args:
        start_date: first day of the competition; scanning starts at its Monday
        end_date: last day of the range (inclusive)
        vacations: VacationPeriod objects or dicts with start_date/end_date/is_active
        excluded_dates: dates already used by other matches; their whole week is skipped
        weeks_needed: when given and not reached, the range is extended

    Returns:
        (weeks, message) where message describes a shortfall, or is None when
        enough weeks were found.
    """
    start = to_date(start_date)
    end = to_date(end_date)
    if end < start:
        raise InvalidInputError(f"End date {end} is before start date {start}")
    if weeks_needed is not None and weeks_needed < 0:
        raise InvalidInputError("weeks_needed cannot be negative")

    vacations = _coerce_vacations(vacations)
    excluded_mondays = {monday_of(d) for d in excluded_dates}

    weeks = []
    scanned = 0
    current = monday_of(start)
    while current <= end:
        if _is_playable(current, vacations, excluded_mondays):
            weeks.append(current)
        current += ONE_WEEK
        scanned += 1

    if weeks_needed and len(weeks) < weeks_needed:
        logger.info("Only %d of %d playing weeks found up to %s, extending the range",
                    len(weeks), weeks_needed, end)
        # the calendar never spans more than 2 * weeks_needed weeks in total
        max_span = max(scanned, 2 * weeks_needed)
        while len(weeks) < weeks_needed and scanned < max_span:
            end += ONE_WEEK * (weeks_needed - len(weeks))
            while current <= end and scanned < max_span:
                if _is_playable(current, vacations, excluded_mondays):
                    weeks.append(current)
                current += ONE_WEEK
                scanned += 1

    message = None
    if not weeks:
        message = f"No playing weeks available between {start} and {end}."
    elif weeks_needed and len(weeks) < weeks_needed:
        message = (f"Only {len(weeks)} playing weeks found ({weeks_needed} needed) "
                   f"between {start} and {end}.")
    if message:
        logger.warning(message)
    return weeks, message


def convert_to_playing_weeks(dates) -> List[datetime.date]:
    """Map arbitrary selected dates to the Monday of their week, keeping order."""
    return [monday_of(d) for d in dates]


def validate_vacation_conflicts(dates, vacations) -> None:
    """Raise InvalidInputError if any selected date falls inside an active vacation."""
    vacations = _coerce_vacations(vacations)
    for value in dates:
        day = to_date(value)
        for vacation in vacations:
            if vacation.contains(day):
                raise InvalidInputError(
                    f"Selected date {day} falls inside vacation period: {vacation.name}"
                )
