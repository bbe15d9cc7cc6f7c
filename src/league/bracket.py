"""
Single elimination cup bracket for 16 teams.

Slots are labelled by round: 1/8-1..8 (round of 16), QF-1..4, SF-1..2 and
FINAL. Only the round of 16 is seeded; later slots are filled by advancing
winners.
"""
import datetime
import logging
import math
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence

from league.errors import BracketError, InvalidInputError
from league.models import to_date
from league.slots import DEFAULT_SLOTS_PER_WEEK, match_datetime

logger = logging.getLogger(__name__)

BRACKET_SIZE = 16
CUP_WEEKS = 5

ROUND_OF_16 = '1/8'
QUARTERFINAL = 'QF'
SEMIFINAL = 'SF'
FINAL = 'FINAL'

# prefix -> (round name, number of slots, week index)
ROUNDS = {
    ROUND_OF_16: ('Round of 16', 8, None),
    QUARTERFINAL: ('Quarterfinal', 4, 2),
    SEMIFINAL: ('Semifinal', 2, 3),
    FINAL: ('Final', 1, 4),
}

NEXT_ROUND = {
    ROUND_OF_16: QUARTERFINAL,
    QUARTERFINAL: SEMIFINAL,
    SEMIFINAL: FINAL,
}

HOME = 'home'
AWAY = 'away'

EMPTY = 'empty'
PARTIAL = 'partial'
FILLED = 'filled'
COMPLETED = 'completed'
ADVANCED = 'advanced'


def make_label(prefix: str, number: int) -> str:
    return FINAL if prefix == FINAL else f"{prefix}-{number}"


def split_label(label: str):
    """Return (prefix, number) of a bracket label, raising BracketError if unknown."""
    if label == FINAL:
        return FINAL, 1
    prefix, _, suffix = str(label).rpartition('-')
    if prefix not in NEXT_ROUND or not suffix.isdigit():
        raise BracketError(f"Unknown bracket slot label: {label!r}")
    number = int(suffix)
    if not 1 <= number <= ROUNDS[prefix][1]:
        raise BracketError(f"Unknown bracket slot label: {label!r}")
    return prefix, number


def extract_match_number(label: str) -> int:
    """Numeric suffix of a label ('1/8-3' -> 3, 'QF-2' -> 2, 'FINAL' -> 1)."""
    return split_label(label)[1]


def round_name_for(label: str) -> str:
    return ROUNDS[split_label(label)[0]][0]


def next_slot_label(label: str) -> Optional[str]:
    """Label of the slot the winner of `label` moves to; None after the final."""
    prefix, number = split_label(label)
    if prefix == FINAL:
        return None
    return make_label(NEXT_ROUND[prefix], math.ceil(number / 2))


class Advancement:
    def __init__(self, source_label, target_label, side, team):
        self.source_label = source_label
        self.target_label = target_label
        self.side = side
        self.team = team

    def __eq__(self, other):
        return (isinstance(other, Advancement) and
                (self.source_label, self.target_label, self.side, self.team) ==
                (other.source_label, other.target_label, other.side, other.team))

    def __repr__(self):
        return (f"Advancement(source_label={self.source_label}, target_label={self.target_label}, "
                f"side={self.side}, team={self.team})")


def advance_winner(label: str, winner) -> Optional[Advancement]:
    """
    Where the winner of `label` plays next.

    Even-numbered matches feed the home side of their parent slot, odd ones
    the away side. Returns None for the final.
    """
    target = next_slot_label(label)
    if target is None:
        return None
    side = HOME if extract_match_number(label) % 2 == 0 else AWAY
    return Advancement(label, target, side, winner)


class BracketSlot:
    def __init__(self, label, week=None, slot_index=0, home=None, away=None):
        split_label(label)
        self.label = label
        self.round_name = round_name_for(label)
        self.week = week
        self.slot_index = slot_index
        self.home = home
        self.away = away
        self.home_score = None
        self.away_score = None
        self.winner = None
        self.advanced = False
        self.venue = None
        self.date_time = None

    @property
    def teams(self):
        return tuple(t for t in (self.home, self.away) if t is not None)

    @property
    def state(self) -> str:
        if self.advanced:
            return ADVANCED
        if self.winner is not None:
            return COMPLETED
        if self.home is not None and self.away is not None:
            return FILLED
        if self.home is not None or self.away is not None:
            return PARTIAL
        return EMPTY

    def to_record(self, is_cup_match=True):
        return {
            'unique_number': self.label,
            'matchday': self.round_name if self.label == FINAL
            else f"{self.round_name} {extract_match_number(self.label)}",
            'home_team_id': self.home,
            'away_team_id': self.away,
            'home_score': self.home_score,
            'away_score': self.away_score,
            'winner_team_id': self.winner,
            'advanced': self.advanced,
            'week': self.week.isoformat() if self.week else None,
            'slot': self.slot_index,
            'match_date': self.date_time.isoformat() if self.date_time else None,
            'venue': self.venue,
            'is_cup_match': is_cup_match,
        }

    def __repr__(self):
        return f"BracketSlot(label={self.label}, home={self.home}, away={self.away}, state={self.state})"


def build_round_of_16(teams: Sequence, weeks: Sequence, shuffle: Optional[Callable] = None) -> List[BracketSlot]:
    """
    Build all 15 cup slots.

    Consecutive teams are paired into 1/8-1..8: the first four matches in the
    first week, the other four in the second. Quarterfinals, semifinals and
    the final are created empty in weeks 3, 4 and 5.

    `shuffle`, when given, receives a copy of the team list and must return
    (or shuffle in place) the draw order; e.g. random.Random(seed).shuffle.
    """
    teams = list(teams)
    if len(teams) != BRACKET_SIZE:
        raise InvalidInputError(f"The cup needs exactly {BRACKET_SIZE} teams, got {len(teams)}")
    if len(set(teams)) != len(teams):
        raise InvalidInputError("Cup team list contains duplicates")
    if len(weeks) != CUP_WEEKS:
        raise InvalidInputError(f"The cup needs exactly {CUP_WEEKS} playing weeks, got {len(weeks)}")
    weeks = [to_date(w) for w in weeks]

    if shuffle is not None:
        drawn = list(teams)
        shuffled = shuffle(drawn)
        drawn = list(shuffled) if shuffled is not None else drawn
        if Counter(drawn) != Counter(teams):
            raise InvalidInputError("Shuffle must return a permutation of the cup teams")
        teams = drawn

    slots = []
    for i in range(BRACKET_SIZE // 2):
        week = weeks[0] if i < 4 else weeks[1]
        slots.append(BracketSlot(make_label(ROUND_OF_16, i + 1), week, i % 4,
                                 home=teams[2 * i], away=teams[2 * i + 1]))
    for prefix in (QUARTERFINAL, SEMIFINAL, FINAL):
        _, count, week_index = ROUNDS[prefix]
        for i in range(count):
            slots.append(BracketSlot(make_label(prefix, i + 1), weeks[week_index], i))
    logger.info("Cup bracket built: %d slots over weeks %s", len(slots), ', '.join(str(w) for w in weeks))
    return slots


def apply_cup_details(slots: Sequence[BracketSlot], priority_order,
                      slots_per_week: int = DEFAULT_SLOTS_PER_WEEK) -> Sequence[BracketSlot]:
    """Fill venue and kick-off time of every cup slot from the priority order."""
    for slot in slots:
        venue, timeslot = priority_order.get_match_details(slot.slot_index, slots_per_week)
        slot.venue = venue
        slot.date_time = match_datetime(slot.week, timeslot)
    return slots


class Bracket:
    """Cup state machine: results are recorded per slot, winners advanced explicitly."""

    def __init__(self, slots: Sequence[BracketSlot]):
        self.slots: Dict[str, BracketSlot] = {slot.label: slot for slot in slots}

    @classmethod
    def build(cls, teams, weeks, shuffle=None):
        return cls(build_round_of_16(teams, weeks, shuffle))

    def slot(self, label: str) -> BracketSlot:
        split_label(label)
        if label not in self.slots:
            raise BracketError(f"Bracket has no slot {label}")
        return self.slots[label]

    def __iter__(self):
        return iter(self.slots.values())

    def __len__(self):
        return len(self.slots)

    def round(self, prefix: str) -> List[BracketSlot]:
        return [s for s in self.slots.values() if s.label == prefix or s.label.startswith(prefix + '-')]

    def record_result(self, label: str, home_score: int, away_score: int, winner=None) -> BracketSlot:
        """
        Store the score of a filled slot.

        A draw needs `winner` (decided by penalty shoot-out or another external
        tie-break); otherwise the higher score wins.
        """
        slot = self.slot(label)
        if slot.advanced:
            raise BracketError(f"{label} has already been advanced; clear the advancement first")
        if slot.home is None or slot.away is None:
            raise BracketError(f"{label} is not filled yet ({slot.state})")
        if home_score is None or away_score is None:
            raise InvalidInputError(f"{label} needs both scores")

        if winner is None:
            if home_score == away_score:
                raise BracketError(f"{label} ended in a draw; a winner must be decided externally")
            winner = slot.home if home_score > away_score else slot.away
        elif winner not in (slot.home, slot.away):
            raise BracketError(f"Team {winner} does not play in {label}")
        elif home_score != away_score and winner != (slot.home if home_score > away_score else slot.away):
            raise BracketError(f"Team {winner} did not win {label} {home_score}-{away_score}")

        slot.home_score = home_score
        slot.away_score = away_score
        slot.winner = winner
        return slot

    def advance(self, label: str) -> Optional[Advancement]:
        """
        Move the winner of a completed slot into its downstream slot.

        Returns None for the final (the cup is decided).
        """
        slot = self.slot(label)
        if slot.state == ADVANCED:
            raise BracketError(f"{label} has already been advanced")
        if slot.state != COMPLETED:
            raise BracketError(f"{label} cannot be advanced from state {slot.state}")

        advancement = advance_winner(label, slot.winner)
        if advancement is not None:
            target = self.slot(advancement.target_label)
            if target.winner is not None:
                raise BracketError(f"{target.label} already has a result")
            setattr(target, advancement.side, slot.winner)
            logger.info("Team %s advances from %s to %s (%s)",
                        slot.winner, label, target.label, advancement.side)
        else:
            logger.info("Team %s wins the cup", slot.winner)
        slot.advanced = True
        return advancement

    def auto_advance(self, label: str, home_score: int, away_score: int, winner=None) -> Optional[Advancement]:
        self.record_result(label, home_score, away_score, winner)
        return self.advance(label)

    def clear_advancement(self, label: str) -> List[str]:
        """
        Undo the advancement out of `label` so its result can be corrected.

        The side fed by this slot is emptied in every downstream slot, and
        downstream results on that path are discarded. Returns the labels that
        were cleared.
        """
        slot = self.slot(label)
        cleared = []
        slot.advanced = False
        slot.winner = None
        slot.home_score = None
        slot.away_score = None
        current = label
        while True:
            target_label = next_slot_label(current)
            if target_label is None:
                break
            side = HOME if extract_match_number(current) % 2 == 0 else AWAY
            target = self.slot(target_label)
            setattr(target, side, None)
            target.winner = None
            target.home_score = None
            target.away_score = None
            target.advanced = False
            cleared.append(target_label)
            current = target_label
        return cleared

    @property
    def champion(self):
        final = self.slots.get(FINAL)
        return final.winner if final is not None else None

    def to_records(self) -> List[dict]:
        return [slot.to_record() for slot in self.slots.values()]

    @classmethod
    def from_records(cls, records: Sequence[dict]) -> "Bracket":
        """Rebuild a bracket from the records produced by to_records."""
        slots = []
        for record in records:
            slot = BracketSlot(record['unique_number'],
                               to_date(record['week']) if record.get('week') else None,
                               record.get('slot', 0),
                               home=record.get('home_team_id'),
                               away=record.get('away_team_id'))
            slot.home_score = record.get('home_score')
            slot.away_score = record.get('away_score')
            slot.winner = record.get('winner_team_id')
            slot.advanced = bool(record.get('advanced', False))
            slot.venue = record.get('venue')
            if record.get('match_date'):
                slot.date_time = datetime.datetime.fromisoformat(record['match_date'])
            slots.append(slot)
        return cls(slots)
