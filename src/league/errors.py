"""
Exceptions raised by the scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for every error the engine raises."""


class InvalidInputError(SchedulingError, ValueError):
    """Input rejected before any scheduling attempt (bad dates, too few teams...)."""


class InfeasibleScheduleError(SchedulingError):
    """
    No valid assignment exists for the given inputs.

    Carries enough detail for the caller to decide how to relax the problem:
    - pairing: the pairing that could not be placed (None for calendar shortfalls)
    - week_usage: list of (week, used_slots, capacity) tuples
    - conflicts: dict of team -> list of weeks where that team already plays
    - alternatives: relaxations that would make the problem feasible, as dicts
      with a "kind" (longer_range, fewer_teams, more_slots) and the number of
      weeks it would need
    """

    def __init__(self, message, pairing=None, week_usage=None, conflicts=None, alternatives=None):
        super().__init__(message)
        self.pairing = pairing
        self.week_usage = week_usage or []
        self.conflicts = conflicts or {}
        self.alternatives = alternatives or []


class BracketError(SchedulingError):
    """Caller misuse of the bracket (unknown label, advancing twice, no winner)."""
