import logging
import os
import re
import sys

from league.competition import schedule_pairings
from league.config import load_constraints, load_timeslots, load_vacations
from league.errors import SchedulingError
from league.models import Pairing, RegularRound
from league.playing_weeks import weeks_needed
from league.slots import PriorityOrder

HEADER = re.compile(r'^#\s*Matchday\s+(\d+)(?:\s*\(round\s+(\d+)\))?')


def _team_id(text):
    text = text.strip()
    return int(text) if text.lstrip('-').isdigit() else text


def parse_matches(lines):
    """Parse '# Matchday N (round R)' headers followed by 'A vs B' lines."""
    pairings = []
    matchday = None
    round_number = 1

    for line in lines:
        line = line.strip()
        if not line:
            continue

        header = HEADER.match(line)
        if header:
            matchday = int(header.group(1))
            round_number = int(header.group(2) or 1)
        elif ' vs ' in line:
            home, away = line.split(' vs ', 1)
            pairings.append(Pairing(_team_id(home), _team_id(away), RegularRound(round_number), matchday))

    return pairings


def format_schedule(matches):
    lines = []
    current_week = None
    for match in matches:
        if match.week != current_week:
            if current_week is not None:
                lines.append('')
            current_week = match.week
            lines.append(f"# Week of {match.week.isoformat()}")
        when = match.date_time.strftime('%a %Y-%m-%d %H:%M') if match.date_time else f"slot {match.slot + 1}"
        lines.append(f"  {when} {match.venue or ''}: {match.pairing.home} vs {match.pairing.away}")
    return lines


def main():
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)
    data_dir = os.path.join(base_dir, 'data')

    constraints = load_constraints(os.path.join(data_dir, 'constraints.yaml'))
    vacations = load_vacations(os.path.join(data_dir, 'vacations.yaml'))
    priority_order = PriorityOrder(load_timeslots(os.path.join(data_dir, 'timeslots.csv')))
    slots_per_week = constraints['slots_per_week']

    pairings = parse_matches(sys.stdin)
    if not pairings:
        print("No matches loaded from stdin. Make sure to pipe the output of generate_matches.py", file=sys.stderr)
        return 1
    if not constraints['start_date'] or not constraints['end_date']:
        print("Set start_date and end_date in data/constraints.yaml", file=sys.stderr)
        return 1

    fixtures_per_team = {}
    for pairing in pairings:
        for team in pairing.teams:
            fixtures_per_team[team] = fixtures_per_team.get(team, 0) + 1
    matchdays = {pairing.matchday for pairing in pairings if pairing.matchday is not None}
    required = weeks_needed(len(pairings), slots_per_week,
                            max(len(matchdays), max(fixtures_per_team.values())),
                            len(fixtures_per_team) // 2)

    try:
        plan = schedule_pairings(pairings, required, constraints['start_date'], constraints['end_date'],
                                 vacations, priority_order=priority_order, slots_per_week=slots_per_week,
                                 allow_partial_calendar=constraints['allow_partial_calendar'])
    except SchedulingError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if plan.message:
        print(f"WARNING: {plan.message}", file=sys.stderr)
    for line in format_schedule(plan.matches):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
