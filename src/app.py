"""
Flask JSON API for the league scheduler.

The engine is pure; this module is the persistence sink. Plans are stored as
YAML files in DATA_DIR and every write goes through a file lock so two
concurrent "generate" requests cannot both succeed.
"""
import os
import random
import yaml
from functools import wraps
from filelock import FileLock
from flask import Flask, jsonify, request
from league.bracket import Bracket
from league.competition import plan_competition, plan_cup, plan_playoffs
from league.config import load_constraints, load_timeslots, load_vacations
from league.errors import BracketError, InfeasibleScheduleError, InvalidInputError
from league.models import Pairing, parse_round_label
from league.pairing import finalize_playoff_matches
from league.slots import PriorityOrder

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('LEAGUE_DATA_DIR', os.path.join(BASE_DIR, 'data'))

COMPETITION_FILE = 'competition.yaml'
PLAYOFFS_FILE = 'playoffs.yaml'
CUP_FILE = 'cup.yaml'


def _file_path(name):
    return os.path.join(DATA_DIR, name)


def _data_lock():
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(_file_path('.lock'), timeout=10)


def load_plan(name):
    """Load a stored plan; None when nothing has been generated yet."""
    path = _file_path(name)
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return data or None


def save_plan(name, data):
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(_file_path(name), 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def delete_plan(name):
    path = _file_path(name)
    if os.path.exists(path):
        os.remove(path)
        return True
    return False


def load_settings():
    """Season settings: constraints, vacations and the timeslot priority order."""
    return (
        load_constraints(_file_path('constraints.yaml')),
        load_vacations(_file_path('vacations.yaml')),
        PriorityOrder(load_timeslots(_file_path('timeslots.csv'))),
    )


def committed_dates(*names):
    """Weeks already used by stored plans, so other formats avoid them."""
    dates = []
    for name in names:
        plan = load_plan(name)
        if not plan:
            continue
        dates.extend(record['week'] for record in plan.get('matches', []) if record.get('week'))
    return dates


def engine_errors(view):
    """Translate engine exceptions into JSON error responses."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except InvalidInputError as e:
            app.logger.info(f'Rejected input: {e}')
            return jsonify({'success': False, 'error': str(e)}), 400
        except InfeasibleScheduleError as e:
            app.logger.warning(f'Infeasible schedule: {e}')
            return jsonify({
                'success': False,
                'error': str(e),
                'week_usage': [
                    {'week': week.isoformat(), 'used': used, 'capacity': capacity}
                    for week, used, capacity in e.week_usage
                ],
                'conflicts': {
                    str(team): [week.isoformat() for week in weeks]
                    for team, weeks in e.conflicts.items()
                },
                'alternatives': e.alternatives,
            }), 422
        except BracketError as e:
            app.logger.warning(f'Bracket misuse: {e}')
            return jsonify({'success': False, 'error': str(e)}), 409
    return wrapper


def _competition_from_request(data, constraints, vacations, priority_order):
    return plan_competition(
        data.get('teams', []),
        int(data.get('rounds', constraints['regular_rounds'])),
        data.get('start_date', constraints['start_date']),
        data.get('end_date', constraints['end_date']),
        vacations=vacations,
        committed_dates=committed_dates(CUP_FILE, PLAYOFFS_FILE),
        priority_order=priority_order,
        slots_per_week=int(constraints['slots_per_week']),
        allow_partial_calendar=bool(data.get('allow_partial_calendar', constraints['allow_partial_calendar'])),
    )


@app.route('/api/competition/preview', methods=['POST'])
@engine_errors
def api_preview_competition():
    """Plan the regular season without storing it."""
    data = request.get_json() or {}
    constraints, vacations, priority_order = load_settings()
    plan = _competition_from_request(data, constraints, vacations, priority_order)
    return jsonify({
        'success': True,
        'message': plan.message,
        'weeks': [week.isoformat() for week in plan.weeks],
        'matches': plan.to_records(),
    })


@app.route('/api/competition', methods=['GET'])
def api_get_competition():
    plan = load_plan(COMPETITION_FILE)
    if plan is None:
        return jsonify({'success': False, 'error': 'No competition generated yet.'}), 404
    return jsonify({'success': True, **plan})


@app.route('/api/competition', methods=['POST'])
@engine_errors
def api_generate_competition():
    """Plan the regular season and store it."""
    data = request.get_json() or {}
    constraints, vacations, priority_order = load_settings()
    with _data_lock():
        if load_plan(COMPETITION_FILE) is not None:
            return jsonify({'success': False, 'error': 'A competition already exists. Delete it first.'}), 409
        plan = _competition_from_request(data, constraints, vacations, priority_order)
        records = plan.to_records()
        save_plan(COMPETITION_FILE, {
            'weeks': [week.isoformat() for week in plan.weeks],
            'matches': records,
        })
    app.logger.info(f'Competition generated: {len(plan.matches)} matches, {len(plan.byes)} byes')
    return jsonify({'success': True, 'message': f'{len(plan.matches)} matches created.', 'matches': records}), 201


@app.route('/api/competition', methods=['DELETE'])
def api_delete_competition():
    with _data_lock():
        deleted = delete_plan(COMPETITION_FILE)
    return jsonify({'success': deleted})


@app.route('/api/playoffs', methods=['POST'])
@engine_errors
def api_generate_playoffs():
    """Plan top/bottom playoffs with ranking positions as placeholders."""
    data = request.get_json() or {}
    constraints, vacations, priority_order = load_settings()
    with _data_lock():
        if load_plan(PLAYOFFS_FILE) is not None:
            return jsonify({'success': False, 'error': 'Playoffs already exist. Delete them first.'}), 409
        plan = plan_playoffs(
            int(data.get('team_count', 0)),
            int(data.get('rounds', constraints['playoff_rounds'])),
            data.get('start_date'),
            data.get('end_date'),
            vacations=vacations,
            committed_dates=committed_dates(COMPETITION_FILE, CUP_FILE),
            priority_order=priority_order,
            slots_per_week=int(constraints['slots_per_week']),
        )
        records = plan.to_records(prefix='PO')
        save_plan(PLAYOFFS_FILE, {'finalized': False, 'matches': records})
    return jsonify({'success': True, 'message': plan.message, 'matches': records}), 201


@app.route('/api/playoffs/finalize', methods=['POST'])
@engine_errors
def api_finalize_playoffs():
    """Replace ranking positions with the teams of the final standings."""
    data = request.get_json() or {}
    standings = data.get('standings', [])
    with _data_lock():
        plan = load_plan(PLAYOFFS_FILE)
        if plan is None:
            return jsonify({'success': False, 'error': 'No playoffs generated yet.'}), 404
        if plan.get('finalized'):
            return jsonify({'success': False, 'error': 'Playoffs are already finalized.'}), 409
        pairings = [
            Pairing(record['home_team_id'], record['away_team_id'], parse_round_label(record['round_label']))
            for record in plan['matches']
        ]
        for record, pairing in zip(plan['matches'], finalize_playoff_matches(pairings, standings)):
            record['home_team_id'] = pairing.home
            record['away_team_id'] = pairing.away
        plan['finalized'] = True
        save_plan(PLAYOFFS_FILE, plan)
    return jsonify({'success': True, 'matches': plan['matches']})


@app.route('/api/playoffs', methods=['DELETE'])
def api_delete_playoffs():
    with _data_lock():
        deleted = delete_plan(PLAYOFFS_FILE)
    return jsonify({'success': deleted})


@app.route('/api/cup', methods=['GET'])
def api_get_cup():
    plan = load_plan(CUP_FILE)
    if plan is None:
        return jsonify({'success': False, 'error': 'No cup generated yet.'}), 404
    return jsonify({'success': True, **plan})


@app.route('/api/cup', methods=['POST'])
@engine_errors
def api_generate_cup():
    """Draw and store the cup bracket. An optional seed makes the draw replayable."""
    data = request.get_json() or {}
    constraints, vacations, priority_order = load_settings()
    seed = data.get('seed')
    shuffle = random.Random(seed).shuffle if seed is not None else random.shuffle
    with _data_lock():
        if load_plan(CUP_FILE) is not None:
            return jsonify({'success': False, 'error': 'A cup already exists. Delete it first.'}), 409
        bracket = plan_cup(
            data.get('teams', []),
            data.get('dates', []),
            vacations=vacations,
            priority_order=priority_order,
            shuffle=shuffle,
            slots_per_week=int(constraints['slots_per_week']),
        )
        records = bracket.to_records()
        save_plan(CUP_FILE, {'matches': records})
    app.logger.info('Cup bracket generated')
    return jsonify({'success': True, 'matches': records}), 201


@app.route('/api/cup/result', methods=['POST'])
@engine_errors
def api_cup_result():
    """Record a cup result and advance the winner."""
    data = request.get_json() or {}
    label = data.get('label', '')
    with _data_lock():
        plan = load_plan(CUP_FILE)
        if plan is None:
            return jsonify({'success': False, 'error': 'No cup generated yet.'}), 404
        bracket = Bracket.from_records(plan['matches'])
        advancement = bracket.auto_advance(label, data.get('home_score'), data.get('away_score'),
                                           data.get('winner'))
        save_plan(CUP_FILE, {'matches': bracket.to_records()})

    if advancement is None:
        return jsonify({'success': True, 'champion': bracket.champion})
    return jsonify({
        'success': True,
        'next': advancement.target_label,
        'side': advancement.side,
        'team': advancement.team,
    })


@app.route('/api/cup/clear', methods=['POST'])
@engine_errors
def api_cup_clear():
    """Undo the advancement out of a slot so its result can be corrected."""
    data = request.get_json() or {}
    with _data_lock():
        plan = load_plan(CUP_FILE)
        if plan is None:
            return jsonify({'success': False, 'error': 'No cup generated yet.'}), 404
        bracket = Bracket.from_records(plan['matches'])
        cleared = bracket.clear_advancement(data.get('label', ''))
        save_plan(CUP_FILE, {'matches': bracket.to_records()})
    return jsonify({'success': True, 'cleared': cleared})


@app.route('/api/cup', methods=['DELETE'])
def api_delete_cup():
    with _data_lock():
        deleted = delete_plan(CUP_FILE)
    return jsonify({'success': deleted})


if __name__ == '__main__':
    app.run(debug=True)
