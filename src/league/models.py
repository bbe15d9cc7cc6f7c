import datetime
import re

from league.errors import InvalidInputError


class RegularRound:
    def __init__(self, number):
        self.number = number

    @property
    def label(self):
        return str(self.number)

    def __eq__(self, other):
        return isinstance(other, RegularRound) and self.number == other.number

    def __hash__(self):
        return hash(('regular', self.number))

    def __repr__(self):
        return f"RegularRound(number={self.number})"


class PlayoffLeg:
    def __init__(self, group, leg):
        self.group = group
        self.leg = leg

    @property
    def label(self):
        return f"{self.group}_playoff_r{self.leg}"

    def __eq__(self, other):
        return isinstance(other, PlayoffLeg) and (self.group, self.leg) == (other.group, other.leg)

    def __hash__(self):
        return hash(('playoff', self.group, self.leg))

    def __repr__(self):
        return f"PlayoffLeg(group={self.group}, leg={self.leg})"


_PLAYOFF_LABEL = re.compile(r'^(?P<group>[a-z0-9]+)_playoff_r(?P<leg>\d+)$')
_MATCHDAY_LABEL = re.compile(r'^Matchday (?P<matchday>\d+)(?: \[PLAYOFF: (?P<playoff>[^\]]+)\])?$')


def parse_round_label(text):
    """Decode a stored round label ("3", "top_playoff_r2") into its variant."""
    text = str(text).strip()
    if text.isdigit():
        return RegularRound(int(text))
    match = _PLAYOFF_LABEL.match(text)
    if match:
        return PlayoffLeg(match.group('group'), int(match.group('leg')))
    raise InvalidInputError(f"Unrecognised round label: {text!r}")


def format_matchday_label(round_label, matchday):
    """Flatten a round label into the single 'matchday' column used for storage."""
    if isinstance(round_label, PlayoffLeg):
        return f"Matchday {matchday} [PLAYOFF: {round_label.label}]"
    return f"Matchday {matchday}"


def parse_matchday_label(text):
    """Inverse of format_matchday_label. Returns (matchday, PlayoffLeg or None)."""
    match = _MATCHDAY_LABEL.match(text.strip())
    if not match:
        raise InvalidInputError(f"Unrecognised matchday label: {text!r}")
    playoff = match.group('playoff')
    return int(match.group('matchday')), parse_round_label(playoff) if playoff else None


class Pairing:
    def __init__(self, home, away, round_label, matchday=None):
        if home == away:
            raise InvalidInputError(f"Team {home} cannot play against itself")
        self.home = home
        self.away = away
        self.round_label = round_label
        self.matchday = matchday

    @property
    def teams(self):
        return (self.home, self.away)

    def reversed(self, round_label=None, matchday=None):
        """Same fixture with home and away swapped."""
        return Pairing(
            self.away,
            self.home,
            round_label if round_label is not None else self.round_label,
            matchday if matchday is not None else self.matchday,
        )

    def _key(self):
        return (self.home, self.away, self.round_label, self.matchday)

    def __eq__(self, other):
        return isinstance(other, Pairing) and self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"Pairing(home={self.home}, away={self.away}, "
                f"round_label={self.round_label.label}, matchday={self.matchday})")


class ScheduledMatch:
    def __init__(self, pairing, week, week_index, slot):
        self.pairing = pairing
        self.week = week
        self.week_index = week_index
        self.slot = slot
        self.venue = None
        self.timeslot = None
        self.date_time = None

    @property
    def teams(self):
        return self.pairing.teams

    def to_record(self, unique_number):
        """Flat dict handed to the persistence sink."""
        round_label = self.pairing.round_label
        is_playoff = isinstance(round_label, PlayoffLeg)
        matchday = self.pairing.matchday if self.pairing.matchday is not None else self.week_index + 1
        return {
            'unique_number': unique_number,
            'matchday': format_matchday_label(round_label, matchday),
            'round_label': round_label.label,
            'home_team_id': self.pairing.home,
            'away_team_id': self.pairing.away,
            'week': self.week.isoformat(),
            'slot': self.slot,
            'match_date': self.date_time.isoformat() if self.date_time else None,
            'venue': self.venue,
            'is_playoff_match': is_playoff,
            'is_bye': False,
        }

    def __repr__(self):
        return (f"ScheduledMatch(pairing={self.pairing}, week={self.week}, "
                f"slot={self.slot}, venue={self.venue})")


class Bye:
    """The team sitting out a matchday of an odd-sized league."""

    def __init__(self, team, round_label, matchday, week=None):
        self.team = team
        self.round_label = round_label
        self.matchday = matchday
        self.week = week

    def to_record(self):
        return {
            'unique_number': f"BYE-{self.matchday:03d}",
            'matchday': format_matchday_label(self.round_label, self.matchday),
            'round_label': self.round_label.label,
            'home_team_id': self.team,
            'away_team_id': None,
            'week': self.week.isoformat() if self.week else None,
            'slot': None,
            'match_date': None,
            'venue': None,
            'is_playoff_match': isinstance(self.round_label, PlayoffLeg),
            'is_bye': True,
        }

    def __repr__(self):
        return f"Bye(team={self.team}, matchday={self.matchday}, week={self.week})"


class VacationPeriod:
    def __init__(self, name, start_date, end_date, is_active=True):
        start_date = to_date(start_date)
        end_date = to_date(end_date)
        if end_date < start_date:
            raise InvalidInputError(
                f"Vacation period '{name}' ends ({end_date}) before it starts ({start_date})"
            )
        self.name = name
        self.start_date = start_date
        self.end_date = end_date
        self.is_active = is_active

    def contains(self, day):
        return self.is_active and self.start_date <= day <= self.end_date

    def __repr__(self):
        return (f"VacationPeriod(name={self.name}, start_date={self.start_date}, "
                f"end_date={self.end_date}, is_active={self.is_active})")


class Timeslot:
    def __init__(self, priority, venue, day_of_week, start_time, end_time=None):
        self.priority = priority
        self.venue = venue
        self.day_of_week = day_of_week  # ISO weekday, 1 = Monday
        self.start_time = start_time
        self.end_time = end_time

    def __repr__(self):
        return (f"Timeslot(priority={self.priority}, venue={self.venue}, "
                f"day_of_week={self.day_of_week}, start_time={self.start_time})")


def to_date(value):
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidInputError(f"Invalid date: {value!r}") from None
