"""
End-to-end planning of the three competition formats.

These functions chain the calendar builder, the pairing generator, the slot
distributor and the bracket engine. They never persist anything: the caller
stores the returned plan.
"""
import logging
from typing import Callable, List, Optional, Sequence

from league.bracket import CUP_WEEKS, Bracket, apply_cup_details
from league.distribution import distribute, validate_schedule, weeks_to_fit
from league.errors import InfeasibleScheduleError, InvalidInputError
from league.models import Bye, ScheduledMatch, to_date
from league.pairing import (
    calculate_playoff_matches, calculate_regular_matches, generate_playoffs_from_ranking,
    matchdays_per_leg, regular_season_matchdays, split_top_bottom,
)
from league.playing_weeks import (
    build_playing_weeks, convert_to_playing_weeks, validate_vacation_conflicts, weeks_needed,
)
from league.slots import DEFAULT_SLOTS_PER_WEEK, PriorityOrder, apply_match_details

logger = logging.getLogger(__name__)

MIN_LEAGUE_TEAMS = 4


class CompetitionPlan:
    def __init__(self, weeks, matches, message=None, byes=None):
        self.weeks = weeks
        self.matches: List[ScheduledMatch] = matches
        self.message = message
        self.byes: List[Bye] = byes or []

    def to_records(self, prefix='M') -> List[dict]:
        records = [match.to_record(f"{prefix}-{i}") for i, match in enumerate(self.matches, start=1)]
        records.extend(bye.to_record() for bye in self.byes)
        return records

    def __repr__(self):
        return f"CompetitionPlan(weeks={len(self.weeks)}, matches={len(self.matches)}, byes={len(self.byes)})"


def validate_competition_input(teams: Sequence, start_date, end_date) -> None:
    if len(teams) < MIN_LEAGUE_TEAMS:
        raise InvalidInputError(f"A competition needs at least {MIN_LEAGUE_TEAMS} teams, got {len(teams)}")
    if len(set(teams)) != len(teams):
        raise InvalidInputError("Team list contains duplicates")
    if start_date is None or end_date is None:
        raise InvalidInputError("Start and end date are required")
    if to_date(end_date) < to_date(start_date):
        raise InvalidInputError(f"End date {end_date} is before start date {start_date}")


def regular_season_weeks(team_count: int, rounds: int, slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> int:
    """Lower bound on the playing weeks of a regular season."""
    return weeks_needed(calculate_regular_matches(team_count, rounds), slots_per_week,
                        matchdays_per_leg(team_count) * rounds, team_count // 2)


def playoff_weeks(team_count: int, rounds: int, slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> int:
    """Lower bound on the playing weeks of split top/bottom playoffs."""
    groups = [len(group) for group in split_top_bottom(range(team_count)) if len(group) >= 2]
    if not groups:
        return 0
    return weeks_needed(sum(calculate_playoff_matches(k, rounds) for k in groups), slots_per_week,
                        max(matchdays_per_leg(k) * rounds for k in groups),
                        sum(k // 2 for k in groups))


def relaxation_alternatives(team_count: int, available_weeks: int, needed_weeks: int, slots_per_week: int,
                            weeks_for: Callable[[int, int], int]) -> List[dict]:
    """
    Ways to make a season fit in available_weeks.

    weeks_for(team_count, slots_per_week) gives the weeks a configuration
    needs. Each alternative is a dict with a 'kind' and the weeks it needs.
    """
    alternatives = []
    if needed_weeks > available_weeks:
        alternatives.append({
            'kind': 'longer_range',
            'extra_weeks': needed_weeks - available_weeks,
            'weeks_needed': needed_weeks,
        })
    for teams in range(team_count - 1, MIN_LEAGUE_TEAMS - 1, -1):
        needed = weeks_for(teams, slots_per_week)
        if needed <= available_weeks:
            alternatives.append({'kind': 'fewer_teams', 'teams': teams, 'weeks_needed': needed})
            break
    # more slots stop helping once every team plays each week
    for slots in range(slots_per_week + 1, team_count // 2 + 1):
        needed = weeks_for(team_count, slots)
        if needed <= available_weeks:
            alternatives.append({'kind': 'more_slots', 'slots_per_week': slots, 'weeks_needed': needed})
            break
    return alternatives


def _describe(alternative: dict) -> str:
    kind = alternative['kind']
    if kind == 'longer_range':
        return f"extend the date range by {alternative['extra_weeks']} playing weeks"
    if kind == 'fewer_teams':
        return f"play with {alternative['teams']} teams: at least {alternative['weeks_needed']} weeks needed"
    return (f"schedule {alternative['slots_per_week']} matches per week: "
            f"at least {alternative['weeks_needed']} weeks needed")


def _shortfall(message: str, alternatives: List[dict]) -> InfeasibleScheduleError:
    if alternatives:
        message = f"{message} Alternatives: {'; '.join(_describe(a) for a in alternatives)}."
    return InfeasibleScheduleError(message, alternatives=alternatives)


def schedule_pairings(pairings, weeks_required: int, start_date, end_date, vacations=(), committed_dates=(),
                      priority_order: Optional[PriorityOrder] = None,
                      slots_per_week: int = DEFAULT_SLOTS_PER_WEEK,
                      allow_partial_calendar: bool = False,
                      relax: Optional[Callable[[int, int], List[dict]]] = None) -> CompetitionPlan:
    """
    Build a calendar for the pairings and distribute them over it.

    weeks_required is a lower bound. When the greedy distributor cannot fill
    a calendar of that length, the calendar is widened one week at a time up
    to the length at which distribution always succeeds (every matchday in
    its own block of weeks).

    relax(available_weeks, needed_weeks) returns the alternatives attached to
    a calendar shortfall.
    """
    ceiling = max(weeks_required, weeks_to_fit(pairings, slots_per_week))
    target = weeks_required
    while True:
        weeks, message = build_playing_weeks(start_date, end_date, vacations, committed_dates,
                                             weeks_needed=target)
        if message and (not allow_partial_calendar or not weeks):
            alternatives = relax(len(weeks), target) if relax else []
            raise _shortfall(message, alternatives)
        try:
            matches = distribute(pairings, weeks, slots_per_week)
            break
        except InfeasibleScheduleError:
            if message or len(weeks) >= ceiling:
                raise
            target = len(weeks) + 1
            logger.info("Distribution failed over %d weeks, widening the calendar to %d",
                        len(weeks), target)

    priority_order = priority_order or PriorityOrder()
    apply_match_details(matches, priority_order, slots_per_week)

    violations = validate_schedule(matches, slots_per_week)
    if violations:
        # distribute() guarantees these invariants; a violation is a bug
        raise AssertionError('; '.join(violations))
    logger.info("Planned %d matches over %d playing weeks", len(matches), len(weeks))
    return CompetitionPlan(weeks, matches, message)


def _byes(matchdays, matches) -> List[Bye]:
    first_week = {}
    for match in matches:
        number = match.pairing.matchday
        if number not in first_week or match.week < first_week[number]:
            first_week[number] = match.week
    return [
        Bye(matchday.bye, matchday.pairings[0].round_label, matchday.number, first_week.get(matchday.number))
        for matchday in matchdays if matchday.bye is not None
    ]


def plan_competition(teams: Sequence, rounds: int, start_date, end_date, vacations=(), committed_dates=(),
                     priority_order: Optional[PriorityOrder] = None,
                     slots_per_week: int = DEFAULT_SLOTS_PER_WEEK,
                     allow_partial_calendar: bool = False) -> CompetitionPlan:
    """
    Plan the regular season.

    committed_dates are dates of matches already stored (cup, other formats);
    their weeks are not used. A calendar shortfall raises
    InfeasibleScheduleError with relaxation alternatives unless
    allow_partial_calendar is set, in which case the distributor decides
    whether the shorter calendar suffices. With an odd team count the plan
    lists the team sitting out each matchday.
    """
    validate_competition_input(teams, start_date, end_date)
    matchdays = regular_season_matchdays(teams, rounds)
    pairings = [pairing for matchday in matchdays for pairing in matchday.pairings]
    required = regular_season_weeks(len(teams), rounds, slots_per_week)
    logger.info("Competition: %d teams, %d rounds, %d matches, %d weeks needed",
                len(teams), rounds, len(pairings), required)

    def relax(available, needed):
        return relaxation_alternatives(len(teams), available, needed, slots_per_week,
                                       lambda count, slots: regular_season_weeks(count, rounds, slots))

    plan = schedule_pairings(pairings, required, start_date, end_date, vacations, committed_dates,
                             priority_order, slots_per_week, allow_partial_calendar, relax)
    plan.byes = _byes(matchdays, plan.matches)
    return plan


def plan_playoffs(team_count: int, rounds: int, start_date, end_date, vacations=(), committed_dates=(),
                  priority_order: Optional[PriorityOrder] = None,
                  slots_per_week: int = DEFAULT_SLOTS_PER_WEEK,
                  allow_partial_calendar: bool = False) -> CompetitionPlan:
    """
    Plan split top/bottom playoffs before the final standings are known.

    Teams are represented by their 1-based final ranking position; call
    pairing.finalize_playoff_matches with the standings to substitute the real
    teams.
    """
    if team_count < MIN_LEAGUE_TEAMS:
        raise InvalidInputError(f"Playoffs need at least {MIN_LEAGUE_TEAMS} teams, got {team_count}")
    positions = list(range(1, team_count + 1))
    pairings = generate_playoffs_from_ranking(positions, rounds)
    top, bottom = split_top_bottom(positions)
    required = playoff_weeks(team_count, rounds, slots_per_week)
    logger.info("Playoffs: top %d / bottom %d, %d matches, %d weeks needed",
                len(top), len(bottom), len(pairings), required)

    def relax(available, needed):
        return relaxation_alternatives(team_count, available, needed, slots_per_week,
                                       lambda count, slots: playoff_weeks(count, rounds, slots))

    return schedule_pairings(pairings, required, start_date, end_date, vacations, committed_dates,
                             priority_order, slots_per_week, allow_partial_calendar, relax)


def plan_cup(teams: Sequence, selected_dates: Sequence, vacations=(),
             priority_order: Optional[PriorityOrder] = None, shuffle: Optional[Callable] = None,
             slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> Bracket:
    """
    Plan the 16-team cup on five selected dates (one per round, two for the round of 16).
    """
    if len(selected_dates) != CUP_WEEKS:
        raise InvalidInputError(f"Select exactly {CUP_WEEKS} playing weeks for the cup, got {len(selected_dates)}")
    validate_vacation_conflicts(selected_dates, vacations)
    weeks = convert_to_playing_weeks(selected_dates)
    if len(set(weeks)) != len(weeks):
        raise InvalidInputError("Two selected cup dates fall in the same week")
    if weeks != sorted(weeks):
        raise InvalidInputError("Cup dates must be in chronological order")

    bracket = Bracket.build(teams, weeks, shuffle)
    apply_cup_details(list(bracket), priority_order or PriorityOrder(), slots_per_week)
    return bracket
