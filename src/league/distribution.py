"""
Slot distributor: assigns pairings to (week, slot) coordinates.

Pairings are processed matchday by matchday. Each pairing goes to the current
target week if possible, otherwise the next week, otherwise the first week in
the calendar that still has room and does not already host either team. When
no week qualifies an InfeasibleScheduleError is raised; matches are never
dropped silently.
"""
import logging
import math
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple

from league.errors import InfeasibleScheduleError, InvalidInputError
from league.models import Pairing, ScheduledMatch
from league.slots import DEFAULT_SLOTS_PER_WEEK

logger = logging.getLogger(__name__)


class WeekLoad:
    """Slots used and teams playing in each playing week."""

    def __init__(self, playing_weeks, slots_per_week):
        self.playing_weeks = list(playing_weeks)
        self.slots_per_week = slots_per_week
        self.slots_used = [0] * len(self.playing_weeks)
        self.teams = [set() for _ in self.playing_weeks]
        self.placed = []

    def __len__(self):
        return len(self.playing_weeks)

    def can_host(self, week_index: int, pairing: Pairing) -> bool:
        if not 0 <= week_index < len(self.playing_weeks):
            return False
        if self.slots_used[week_index] >= self.slots_per_week:
            return False
        week_teams = self.teams[week_index]
        return pairing.home not in week_teams and pairing.away not in week_teams

    def place(self, week_index: int, pairing: Pairing) -> ScheduledMatch:
        slot = self.slots_used[week_index]
        match = ScheduledMatch(pairing, self.playing_weeks[week_index], week_index, slot)
        self.slots_used[week_index] = slot + 1
        self.teams[week_index].update(pairing.teams)
        self.placed.append(match)
        return match

    def usage(self) -> List[Tuple]:
        return [(week, used, self.slots_per_week)
                for week, used in zip(self.playing_weeks, self.slots_used)]

    def weeks_playing(self, team) -> List:
        return [week for week, teams in zip(self.playing_weeks, self.teams) if team in teams]


def count_teams(pairings: Sequence[Pairing]) -> int:
    teams = set()
    for pairing in pairings:
        teams.update(pairing.teams)
    return len(teams)


def default_matchday_size(team_count: int) -> int:
    """Pairings per matchday: every team plays once, an odd team out gets a bye."""
    return max(1, math.ceil(team_count / 2))


def default_weeks_per_matchday(matchday_size: int, slots_per_week: int) -> int:
    """Calendar weeks one matchday spans; 8 pairings over 7 slots span two weeks."""
    return max(1, math.ceil(matchday_size / slots_per_week))


def group_into_matchdays(pairings: Sequence[Pairing], matchday_size: int) -> "OrderedDict[int, List[Pairing]]":
    """
    Group pairings into matchdays.

    Pairings carrying a matchday number keep it. The rest are assigned
    first-fit, in input order, to the earliest matchday that has room and in
    which neither team plays yet.
    """
    numbered: Dict[int, List[Pairing]] = {}
    unnumbered = []
    for pairing in pairings:
        if pairing.matchday is not None:
            numbered.setdefault(pairing.matchday, []).append(pairing)
        else:
            unnumbered.append(pairing)

    if unnumbered:
        offset = max(numbered) if numbered else 0
        derived: List[List[Pairing]] = []
        derived_teams: List[set] = []
        for pairing in unnumbered:
            for batch, teams in zip(derived, derived_teams):
                if len(batch) < matchday_size and pairing.home not in teams and pairing.away not in teams:
                    batch.append(pairing)
                    teams.update(pairing.teams)
                    break
            else:
                derived.append([pairing])
                derived_teams.append(set(pairing.teams))
        for number, batch in enumerate(derived, start=offset + 1):
            numbered[number] = batch

    return OrderedDict(sorted(numbered.items()))


def _find_week(load: WeekLoad, pairing: Pairing, current_week: int) -> Optional[int]:
    """Current week, then the next one, then any week in calendar order."""
    for candidate in (current_week, current_week + 1):
        if load.can_host(candidate, pairing):
            return candidate
    for candidate in range(len(load)):
        if candidate in (current_week, current_week + 1):
            continue
        if load.can_host(candidate, pairing):
            return candidate
    return None


def _infeasible(load: WeekLoad, pairing: Pairing, matchday: int) -> InfeasibleScheduleError:
    usage = load.usage()
    conflicts = {team: load.weeks_playing(team) for team in pairing.teams}
    usage_text = ', '.join(f"{week}: {used}/{capacity} slots" for week, used, capacity in usage)
    conflict_text = '; '.join(
        f"team {team} already plays in {', '.join(str(w) for w in weeks) or 'no week'}"
        for team, weeks in conflicts.items()
    )
    message = (
        f"Cannot place matchday {matchday} pairing {pairing.home} vs {pairing.away}: "
        f"every week is full or already hosts one of these teams. "
        f"Week usage: {usage_text or 'no playing weeks'}. Conflicts: {conflict_text}."
    )
    return InfeasibleScheduleError(message, pairing=pairing, week_usage=usage, conflicts=conflicts)


def place_matchday(load: WeekLoad, pairings: Sequence[Pairing], matchday: int,
                   current_week: int, weeks_per_matchday: int) -> int:
    """
    Place one matchday's pairings and return the target week for the next matchday.
    """
    for pairing in pairings:
        week_index = _find_week(load, pairing, current_week)
        if week_index is None:
            raise _infeasible(load, pairing, matchday)
        match = load.place(week_index, pairing)
        logger.debug("Matchday %s: %s vs %s -> week %s slot %s",
                     matchday, pairing.home, pairing.away, match.week, match.slot)
    return current_week + weeks_per_matchday


def _batching(pairings: List[Pairing], slots_per_week: int, matchday_size: Optional[int],
              weeks_per_matchday: Optional[int]):
    if slots_per_week < 1:
        raise InvalidInputError("slots_per_week must be at least 1")
    if matchday_size is None:
        matchday_size = default_matchday_size(count_teams(pairings))
    if matchday_size < 1:
        raise InvalidInputError("matchday_size must be at least 1")
    if weeks_per_matchday is None:
        weeks_per_matchday = default_weeks_per_matchday(matchday_size, slots_per_week)
    return group_into_matchdays(pairings, matchday_size), weeks_per_matchday


def weeks_to_fit(pairings: Sequence[Pairing], slots_per_week: int = DEFAULT_SLOTS_PER_WEEK,
                 matchday_size: Optional[int] = None, weeks_per_matchday: Optional[int] = None) -> int:
    """
    Number of playing weeks with which distribute always succeeds.

    Every matchday is team-disjoint and fits in weeks_per_matchday weeks, so a
    calendar giving each matchday its own block of weeks never runs out.
    """
    pairings = list(pairings)
    matchdays, weeks_per_matchday = _batching(pairings, slots_per_week, matchday_size, weeks_per_matchday)
    return len(matchdays) * weeks_per_matchday


def distribute(pairings: Sequence[Pairing], playing_weeks: Sequence, slots_per_week: int = DEFAULT_SLOTS_PER_WEEK,
               matchday_size: Optional[int] = None, weeks_per_matchday: Optional[int] = None) -> List[ScheduledMatch]:
    """
    Assign every pairing to a (week, slot) coordinate.

    Args:
        pairings: fixtures to place, optionally carrying matchday numbers
        playing_weeks: ordered Monday dates from the calendar builder
        slots_per_week: slot capacity of every week
        matchday_size: pairings per matchday (default: half the team count, rounded up)
        weeks_per_matchday: weeks the target pointer advances after each matchday

    Returns:
        ScheduledMatch list sorted by (week, slot).

    Raises:
        InfeasibleScheduleError: a pairing fits in no week.
    """
    pairings = list(pairings)
    matchdays, weeks_per_matchday = _batching(pairings, slots_per_week, matchday_size, weeks_per_matchday)
    if not pairings:
        return []

    load = WeekLoad(playing_weeks, slots_per_week)
    logger.info("Distributing %d pairings in %d matchdays over %d weeks (%d slots each)",
                len(pairings), len(matchdays), len(load), slots_per_week)

    current_week = 0
    for matchday, batch in matchdays.items():
        current_week = place_matchday(load, batch, matchday, current_week, weeks_per_matchday)

    return sorted(load.placed, key=lambda m: (m.week_index, m.slot))


def validate_schedule(matches: Sequence[ScheduledMatch], slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> List[str]:
    """Return a list of invariant violations (empty when the schedule is valid)."""
    violations = []
    teams_by_week: Dict = {}
    slots_by_week: Dict = {}
    for match in matches:
        week_teams = teams_by_week.setdefault(match.week, set())
        for team in match.teams:
            if team in week_teams:
                violations.append(f"Team {team} plays more than once in week {match.week}")
            week_teams.add(team)
        week_slots = slots_by_week.setdefault(match.week, set())
        if match.slot in week_slots:
            violations.append(f"Slot {match.slot} used twice in week {match.week}")
        week_slots.add(match.slot)
        if not 0 <= match.slot < slots_per_week:
            violations.append(f"Slot {match.slot} out of range in week {match.week}")
    return violations
