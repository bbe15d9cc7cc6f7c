"""
Round-robin pairing generation for league play and split-group playoffs.
"""
from itertools import combinations
from typing import Dict, List, Sequence

from league.errors import InvalidInputError
from league.models import Pairing, PlayoffLeg, RegularRound

BYE = None  # placeholder occupying the extra position of an odd group


class Matchday:
    def __init__(self, number, pairings, bye=None):
        self.number = number
        self.pairings = pairings
        self.bye = bye

    def __repr__(self):
        return f"Matchday(number={self.number}, pairings={len(self.pairings)}, bye={self.bye})"


def _check_teams(teams: Sequence, minimum: int = 2):
    if len(teams) < minimum:
        raise InvalidInputError(f"At least {minimum} teams are required, got {len(teams)}")
    if len(set(teams)) != len(teams):
        raise InvalidInputError("Team list contains duplicates")


def _check_legs(rounds: int):
    if rounds not in (1, 2):
        raise InvalidInputError(f"Only single or double round-robin is supported, got {rounds} rounds")


def calculate_regular_matches(team_count: int, rounds: int) -> int:
    return team_count * (team_count - 1) // 2 * rounds


def calculate_playoff_matches(group_size: int, rounds: int = 2) -> int:
    return group_size * (group_size - 1) // 2 * rounds


def all_pairs(teams: Sequence) -> List[Pairing]:
    """Every unordered pair once; teams[i] is at home against teams[j] for i < j."""
    _check_teams(teams)
    return [Pairing(home, away, RegularRound(1)) for home, away in combinations(teams, 2)]


def round_robin_matchdays(teams: Sequence) -> List[Matchday]:
    """
    Circle method: the first entry stays fixed, the last entry rotates into
    position 1 after every matchday.

    Odd groups get a BYE placeholder, so the team facing it sits out that
    matchday. Returns n - 1 matchdays for even n and n matchdays for odd n.
    """
    _check_teams(teams)
    ring = list(teams)
    if len(ring) % 2:
        ring.append(BYE)
    size = len(ring)

    matchdays = []
    for number in range(1, size):
        pairings = []
        bye = None
        for i in range(size // 2):
            home, away = ring[i], ring[size - 1 - i]
            if home is BYE:
                bye = away
            elif away is BYE:
                bye = home
            else:
                pairings.append(Pairing(home, away, RegularRound(1), matchday=number))
        matchdays.append(Matchday(number, pairings, bye))
        ring.insert(1, ring.pop())
    return matchdays


def matchdays_per_leg(team_count: int) -> int:
    """Circle-method matchdays in one leg: n - 1 for even n, n for odd n."""
    return team_count if team_count % 2 else team_count - 1


def regular_season_matchdays(teams: Sequence, rounds: int = 1) -> List[Matchday]:
    """
    League matchdays over one or two legs.

    The second leg repeats the first leg's matchdays with home and away
    swapped; matchday numbers continue from the first leg and the bye stays
    with its matchday.
    """
    _check_legs(rounds)
    first_leg = round_robin_matchdays(teams)
    per_leg = len(first_leg)

    matchdays = []
    for leg in range(1, rounds + 1):
        for matchday in first_leg:
            number = (leg - 1) * per_leg + matchday.number
            if leg % 2 == 1:
                pairings = [Pairing(p.home, p.away, RegularRound(leg), number) for p in matchday.pairings]
            else:
                pairings = [p.reversed(RegularRound(leg), number) for p in matchday.pairings]
            matchdays.append(Matchday(number, pairings, matchday.bye))
    return matchdays


def generate_regular_season(teams: Sequence, rounds: int = 1) -> List[Pairing]:
    """League fixtures ordered by matchday."""
    return [pairing for matchday in regular_season_matchdays(teams, rounds)
            for pairing in matchday.pairings]


def double_round_robin(positions: Sequence, rounds: int = 2, group: str = 'top') -> List[Pairing]:
    """Every pair plays once per leg; home and away swap on the second leg."""
    _check_legs(rounds)
    _check_teams(positions)
    pairings = []
    for leg in range(1, rounds + 1):
        for home, away in combinations(positions, 2):
            if leg % 2 == 1:
                pairings.append(Pairing(home, away, PlayoffLeg(group, leg)))
            else:
                pairings.append(Pairing(away, home, PlayoffLeg(group, leg)))
    return pairings


def get_bye_info_for_playoffs(positions: Sequence, rounds: int) -> Dict[int, object]:
    """
    Which position sits out in each round of an odd-sized group.

    Follows the circle-method bye order, so no position sits out twice before
    every other position has sat out once. Even groups have no byes.
    """
    if len(positions) % 2 == 0 or rounds < 1:
        return {}
    byes = [matchday.bye for matchday in round_robin_matchdays(positions)]
    return {r: byes[(r - 1) % len(byes)] for r in range(1, rounds + 1)}


def split_top_bottom(ranking: Sequence):
    """Split a ranking in two halves; with an odd count the bottom half is larger."""
    half = len(ranking) // 2
    return list(ranking[:half]), list(ranking[half:])


def generate_playoffs_from_ranking(ranking: Sequence, rounds: int = 2) -> List[Pairing]:
    """Top and bottom half each play a (double) round-robin; fixtures are interleaved."""
    top, bottom = split_top_bottom(ranking)
    top_pairings = double_round_robin(top, rounds, 'top') if len(top) >= 2 else []
    bottom_pairings = double_round_robin(bottom, rounds, 'bottom') if len(bottom) >= 2 else []

    interleaved = []
    for i in range(max(len(top_pairings), len(bottom_pairings))):
        if i < len(top_pairings):
            interleaved.append(top_pairings[i])
        if i < len(bottom_pairings):
            interleaved.append(bottom_pairings[i])
    return interleaved


def finalize_playoff_matches(matches, standings: Sequence):
    """
    Replace 1-based ranking positions with the real teams from the final standings.

    Works on Pairing or ScheduledMatch objects and returns new pairings or
    updates matches in place, mirroring what it received.
    """
    def resolve(position):
        if not isinstance(position, int) or not 1 <= position <= len(standings):
            raise InvalidInputError(
                f"Playoff position {position!r} not covered by standings of {len(standings)} teams"
            )
        return standings[position - 1]

    finalized = []
    for match in matches:
        pairing = getattr(match, 'pairing', match)
        resolved = Pairing(resolve(pairing.home), resolve(pairing.away),
                           pairing.round_label, pairing.matchday)
        if match is pairing:
            finalized.append(resolved)
        else:
            match.pairing = resolved
            finalized.append(match)
    return finalized
