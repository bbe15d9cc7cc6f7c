# Entry point: plan the regular season from the files in data/

import logging
import os

from allocate_matches import format_schedule
from league.competition import plan_competition
from league.config import load_constraints, load_teams, load_timeslots, load_vacations
from league.errors import SchedulingError
from league.slots import PriorityOrder


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    teams_file = os.path.join(base_dir, 'data', 'teams.yaml')
    constraints_file = os.path.join(base_dir, 'data', 'constraints.yaml')
    vacations_file = os.path.join(base_dir, 'data', 'vacations.yaml')
    timeslots_file = os.path.join(base_dir, 'data', 'timeslots.csv')

    teams = load_teams(teams_file)
    constraints = load_constraints(constraints_file)

    if not teams:
        print("No teams loaded. Check data/teams.yaml")
        return

    try:
        plan = plan_competition(
            teams,
            constraints['regular_rounds'],
            constraints['start_date'],
            constraints['end_date'],
            vacations=load_vacations(vacations_file),
            priority_order=PriorityOrder(load_timeslots(timeslots_file)),
            slots_per_week=constraints['slots_per_week'],
            allow_partial_calendar=constraints['allow_partial_calendar'],
        )
    except SchedulingError as e:
        print(f"Could not plan the competition: {e}")
        return

    print("\n--- Final Schedule ---")
    if plan.message:
        print(f"WARNING: {plan.message}")
    for line in format_schedule(plan.matches):
        print(line)
    if plan.byes:
        print("\n--- Byes ---")
        for bye in plan.byes:
            print(f"  Matchday {bye.matchday}: {bye.team} sits out")


if __name__ == '__main__':
    main()
