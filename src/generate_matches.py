import os
import sys

from league.config import load_teams
from league.pairing import generate_regular_season


def format_matches(pairings):
    """Render pairings grouped by matchday, the format allocate_matches.py reads."""
    lines = []
    current = None
    for pairing in pairings:
        if pairing.matchday != current:
            if current is not None:
                lines.append('')  # Blank line between matchdays
            current = pairing.matchday
            lines.append(f"# Matchday {pairing.matchday} (round {pairing.round_label.label})")
        lines.append(f"{pairing.home} vs {pairing.away}")
    return lines


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line arguments if provided, otherwise use default path and a single round
    teams_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'teams.yaml')
    rounds = int(sys.argv[2]) if len(sys.argv) > 2 else 1

    teams = load_teams(teams_file)
    if len(teams) < 2:
        print(f"Need at least 2 teams in {teams_file}", file=sys.stderr)
        return

    for line in format_matches(generate_regular_season(teams, rounds)):
        print(line)


if __name__ == '__main__':
    main()
