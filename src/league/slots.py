"""
Venue and timeslot priority order.

Slots inside a playing week are numbered 0..slots_per_week-1; slot 0 is the
most desirable venue/time. The engine only allocates slot numbers, this module
turns them into a venue, a day and a kick-off time.
"""
import datetime
from typing import List, Tuple

from league.errors import InvalidInputError
from league.models import Timeslot

DEFAULT_SLOTS_PER_WEEK = 7
DEFAULT_START_TIME = '19:00'

# Reference deployment: two venues, Monday and Tuesday evenings
DEFAULT_TIMESLOTS = [
    Timeslot(1, 'De Dageraad Harelbeke', 1, '20:00', '21:00'),
    Timeslot(2, 'De Vlasschaard Bavikhove', 1, '20:00', '21:00'),
    Timeslot(3, 'De Dageraad Harelbeke', 2, '19:30', '20:30'),
    Timeslot(4, 'De Dageraad Harelbeke', 1, '19:00', '20:00'),
    Timeslot(5, 'De Vlasschaard Bavikhove', 1, '19:00', '20:00'),
    Timeslot(6, 'De Dageraad Harelbeke', 2, '18:30', '19:30'),
    Timeslot(7, 'De Vlasschaard Bavikhove', 2, '18:30', '19:30'),
]


class PriorityOrder:
    def __init__(self, timeslots=None):
        timeslots = list(timeslots if timeslots is not None else DEFAULT_TIMESLOTS)
        if not timeslots:
            raise InvalidInputError("At least one timeslot is required")
        self.timeslots = sorted(timeslots, key=lambda t: t.priority)

    def get_match_details(self, slot_index: int, slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> Tuple[str, Timeslot]:
        """Venue and timeslot for a slot, cycling through the ranking."""
        if not 0 <= slot_index < slots_per_week:
            raise InvalidInputError(f"Slot {slot_index} outside 0..{slots_per_week - 1}")
        timeslot = self.timeslots[slot_index % len(self.timeslots)]
        return timeslot.venue, timeslot

    def __len__(self):
        return len(self.timeslots)


def match_date_for(week: datetime.date, timeslot: Timeslot) -> datetime.date:
    """Day of the timeslot inside the playing week starting on Monday `week`."""
    day_of_week = timeslot.day_of_week if timeslot and timeslot.day_of_week else 1
    return week + datetime.timedelta(days=day_of_week - 1)


def match_datetime(week: datetime.date, timeslot: Timeslot) -> datetime.datetime:
    start_time = timeslot.start_time if timeslot and timeslot.start_time else DEFAULT_START_TIME
    kick_off = datetime.datetime.strptime(start_time, '%H:%M').time()
    return datetime.datetime.combine(match_date_for(week, timeslot), kick_off)


def apply_match_details(matches: List, priority_order: PriorityOrder,
                        slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> List:
    """Fill venue, timeslot and date_time of distributed matches in place."""
    for match in matches:
        venue, timeslot = priority_order.get_match_details(match.slot, slots_per_week)
        match.venue = venue
        match.timeslot = timeslot
        match.date_time = match_datetime(match.week, timeslot)
    return matches
