"""
Tests for the Flask JSON API.
"""
import os
import yaml


COMPETITION = {
    'teams': list(range(1, 9)),
    'rounds': 1,
    'start_date': '2025-09-01',
    'end_date': '2025-12-15',
}

CUP_DATES = ['2026-02-02', '2026-02-09', '2026-02-16', '2026-02-23', '2026-03-02']


class TestCompetitionRoutes:
    """Tests for the regular season endpoints."""

    def test_preview_does_not_store(self, client, temp_data_dir):
        response = client.post('/api/competition/preview', json=COMPETITION)
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert len(data['matches']) == 28
        assert not os.path.exists(os.path.join(temp_data_dir, 'competition.yaml'))

    def test_generate_get_delete(self, client, temp_data_dir):
        response = client.post('/api/competition', json=COMPETITION)
        assert response.status_code == 201

        with open(os.path.join(temp_data_dir, 'competition.yaml')) as f:
            stored = yaml.safe_load(f)
        assert len(stored['matches']) == 28

        response = client.get('/api/competition')
        assert response.status_code == 200
        assert response.get_json()['matches'][0]['unique_number'] == 'M-1'

        assert client.delete('/api/competition').get_json()['success'] is True
        assert client.get('/api/competition').status_code == 404

    def test_second_generate_conflicts(self, client):
        assert client.post('/api/competition', json=COMPETITION).status_code == 201
        response = client.post('/api/competition', json=COMPETITION)
        assert response.status_code == 409

    def test_timeslots_from_data_dir(self, client):
        matches = client.post('/api/competition/preview', json=COMPETITION).get_json()['matches']
        assert {m['venue'] for m in matches} <= {'Main Hall', 'Side Hall'}

    def test_invalid_input(self, client):
        response = client.post('/api/competition/preview', json={**COMPETITION, 'teams': [1, 2, 3]})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_infeasible(self, client, temp_data_dir):
        with open(os.path.join(temp_data_dir, 'vacations.yaml'), 'w') as f:
            f.write("- name: Renovation\n  start_date: 2025-09-15\n  end_date: 2026-12-31\n")
        response = client.post('/api/competition/preview', json={**COMPETITION, 'end_date': '2025-09-08',
                                                                  'allow_partial_calendar': True})
        assert response.status_code == 422
        data = response.get_json()
        assert len(data['week_usage']) == 2
        assert data['conflicts']

    def test_shortfall_returns_alternatives(self, client, temp_data_dir):
        with open(os.path.join(temp_data_dir, 'vacations.yaml'), 'w') as f:
            f.write("- name: Renovation\n  start_date: 2025-09-15\n  end_date: 2026-12-31\n")
        response = client.post('/api/competition/preview', json={**COMPETITION, 'end_date': '2025-09-08'})
        assert response.status_code == 422
        data = response.get_json()
        assert data['alternatives'] == [{'kind': 'longer_range', 'extra_weeks': 5, 'weeks_needed': 7}]
        assert 'extend the date range by 5 playing weeks' in data['error']

    def test_odd_league_stores_byes(self, client):
        response = client.post('/api/competition', json={**COMPETITION, 'teams': [1, 2, 3, 4, 5]})
        assert response.status_code == 201
        matches = client.get('/api/competition').get_json()['matches']
        assert len(matches) == 10 + 5
        assert [m['unique_number'] for m in matches if m['is_bye']] == [
            'BYE-001', 'BYE-002', 'BYE-003', 'BYE-004', 'BYE-005']

    def test_cup_weeks_excluded(self, client):
        assert client.post('/api/cup', json={'teams': list(range(101, 117)), 'dates': CUP_DATES}).status_code == 201
        response = client.post('/api/competition/preview', json={**COMPETITION, 'start_date': '2026-02-02',
                                                                  'end_date': '2026-05-25'})
        weeks = response.get_json()['weeks']
        assert not set(weeks) & set(CUP_DATES)


class TestPlayoffRoutes:
    """Tests for the playoff endpoints."""

    def test_generate_and_finalize(self, client):
        response = client.post('/api/playoffs', json={
            'team_count': 8, 'rounds': 2, 'start_date': '2026-03-02', 'end_date': '2026-06-29',
        })
        assert response.status_code == 201
        assert len(response.get_json()['matches']) == 24

        standings = [f'T{i}' for i in range(1, 9)]
        response = client.post('/api/playoffs/finalize', json={'standings': standings})
        assert response.status_code == 200
        teams = {m['home_team_id'] for m in response.get_json()['matches']}
        assert teams == set(standings)

        assert client.post('/api/playoffs/finalize', json={'standings': standings}).status_code == 409

    def test_finalize_without_playoffs(self, client):
        assert client.post('/api/playoffs/finalize', json={'standings': []}).status_code == 404


class TestCupRoutes:
    """Tests for the cup endpoints."""

    def _create(self, client, seed=5):
        response = client.post('/api/cup', json={
            'teams': list(range(101, 117)), 'dates': CUP_DATES, 'seed': seed,
        })
        assert response.status_code == 201
        return {m['unique_number']: m for m in response.get_json()['matches']}

    def test_seeded_draw_is_replayable(self, client):
        first = self._create(client)
        client.delete('/api/cup')
        second = self._create(client)
        assert first['1/8-1']['home_team_id'] == second['1/8-1']['home_team_id']

    def test_result_advances_winner(self, client):
        slots = self._create(client)
        home = slots['1/8-1']['home_team_id']

        response = client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 2, 'away_score': 0})
        assert response.status_code == 200
        data = response.get_json()
        assert data == {'success': True, 'next': 'QF-1', 'side': 'away', 'team': home}

        stored = {m['unique_number']: m for m in client.get('/api/cup').get_json()['matches']}
        assert stored['QF-1']['away_team_id'] == home

    def test_result_twice_conflicts(self, client):
        self._create(client)
        client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 2, 'away_score': 0})
        response = client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 0, 'away_score': 2})
        assert response.status_code == 409

    def test_clear_then_correct(self, client):
        slots = self._create(client)
        away = slots['1/8-1']['away_team_id']
        client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 2, 'away_score': 0})

        response = client.post('/api/cup/clear', json={'label': '1/8-1'})
        assert response.get_json()['cleared'] == ['QF-1', 'SF-1', 'FINAL']

        response = client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 0, 'away_score': 1})
        assert response.get_json()['team'] == away

    def test_missing_score_rejected(self, client):
        """A result without both scores is bad input and changes nothing."""
        self._create(client)
        response = client.post('/api/cup/result', json={'label': '1/8-1', 'home_score': 2})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

        stored = {m['unique_number']: m for m in client.get('/api/cup').get_json()['matches']}
        assert stored['QF-1']['away_team_id'] is None

    def test_unknown_label(self, client):
        self._create(client)
        response = client.post('/api/cup/result', json={'label': 'QF-9', 'home_score': 1, 'away_score': 0})
        assert response.status_code == 409

    def test_wrong_team_count(self, client):
        response = client.post('/api/cup', json={'teams': [1, 2, 3], 'dates': CUP_DATES})
        assert response.status_code == 400

    def test_get_without_cup(self, client):
        assert client.get('/api/cup').status_code == 404
