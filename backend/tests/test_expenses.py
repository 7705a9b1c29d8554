"""
Expense and budget tests.

Verifies:
- Validation, defaults and exact decimal sums
- The synchronous 80% warning: band [80, 100), owner and admins only,
  no deduplication
- Summary, category breakdown, update and delete
"""

import pytest

from budgetboard.extensions import db
from budgetboard.models import Notification
from budgetboard.time_utils import utcnow


def _expenses_url(project_id):
    return f"/api/projects/{project_id}/expenses"


def _budget_warnings(user_id):
    return (
        db.session.query(Notification)
        .filter_by(user_id=user_id, type='budget_warning')
        .order_by(Notification.created_at.asc())
        .all()
    )


class TestCreateExpense:
    def test_defaults(self, client, team):
        resp = client.post(
            _expenses_url(team['project']['id']),
            json={'amount': '12.50', 'description': 'Posters'},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body['amount'] == '12.50'
        assert body['category'] == 'General'
        assert body['date'] == utcnow().date().isoformat()
        assert body['created_by'] == team['editor']['id']
        assert body['created_by_name'] == team['editor']['name']

    @pytest.mark.parametrize("payload", [
        {'description': 'No amount'},
        {'amount': 10},
        {'amount': 10, 'description': '   '},
        {'amount': '', 'description': 'Blank amount'},
    ])
    def test_required_fields(self, client, team, payload):
        resp = client.post(_expenses_url(team['project']['id']), json=payload, headers=team['editor']['headers'])
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Amount and description are required.'

    @pytest.mark.parametrize("amount", [0, -5, "-0.01", "abc", True, 0.001, "0.004"])
    def test_amount_must_be_positive_number(self, client, team, amount):
        resp = client.post(
            _expenses_url(team['project']['id']),
            json={'amount': amount, 'description': 'Bad'},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Amount must be a positive number.'

    def test_task_must_belong_to_project(self, client, team, create_project):
        other = create_project(team['owner'], name='Other', total_budget=0)
        foreign = client.post(
            f"/api/projects/{other['id']}/tasks", json={'title': 'Foreign'}, headers=team['owner']['headers']
        ).get_json()
        resp = client.post(
            _expenses_url(team['project']['id']),
            json={'amount': 5, 'description': 'Cross', 'task_id': foreign['id']},
            headers=team['owner']['headers'],
        )
        assert resp.status_code == 400

    def test_activity_line(self, client, team):
        pid = team['project']['id']
        client.post(_expenses_url(pid), json={'amount': '150', 'description': 'Catering'}, headers=team['editor']['headers'])
        feed = client.get(f"/api/projects/{pid}/activities", headers=team['owner']['headers']).get_json()
        assert feed[0]['action'] == 'Added expense: Catering (150.00)'


class TestBudgetWarning:
    def test_crossing_80_percent_warns_owner_and_admin(self, client, team):
        resp = client.post(
            _expenses_url(team['project']['id']),
            json={'amount': 800, 'description': 'Venue'},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 201

        for member in ('owner', 'admin'):
            warnings = _budget_warnings(team[member]['id'])
            assert [w.message for w in warnings] == ['Budget is 80% used']
            assert warnings[0].project_id == team['project']['id']
        for member in ('editor', 'viewer'):
            assert _budget_warnings(team[member]['id']) == []

    def test_below_band_does_not_warn(self, client, team):
        client.post(
            _expenses_url(team['project']['id']),
            json={'amount': '799.99', 'description': 'Venue'},
            headers=team['editor']['headers'],
        )
        assert _budget_warnings(team['owner']['id']) == []

    def test_at_or_over_budget_does_not_warn(self, client, team):
        client.post(
            _expenses_url(team['project']['id']),
            json={'amount': 1000, 'description': 'Everything'},
            headers=team['editor']['headers'],
        )
        client.post(
            _expenses_url(team['project']['id']),
            json={'amount': 10, 'description': 'More'},
            headers=team['editor']['headers'],
        )
        assert _budget_warnings(team['owner']['id']) == []

    def test_every_insert_inside_band_warns_again(self, client, team):
        url = _expenses_url(team['project']['id'])
        client.post(url, json={'amount': 800, 'description': 'Venue'}, headers=team['editor']['headers'])
        client.post(url, json={'amount': 56, 'description': 'Chairs'}, headers=team['editor']['headers'])
        messages = [w.message for w in _budget_warnings(team['owner']['id'])]
        assert messages == ['Budget is 80% used', 'Budget is 86% used']

    def test_zero_budget_never_warns(self, client, register_user, create_project):
        owner = register_user()
        project = create_project(owner, name='Free', total_budget=0)
        client.post(_expenses_url(project['id']), json={'amount': 500, 'description': 'x'}, headers=owner['headers'])
        assert _budget_warnings(owner['id']) == []

    def test_tenths_sum_exactly(self, client, register_user, create_project):
        owner = register_user()
        project = create_project(owner, name='Petty cash', total_budget='1.00')
        url = _expenses_url(project['id'])
        for _ in range(7):
            client.post(url, json={'amount': 0.1, 'description': 'Stamp'}, headers=owner['headers'])
        assert _budget_warnings(owner['id']) == []

        client.post(url, json={'amount': 0.1, 'description': 'Stamp'}, headers=owner['headers'])
        assert [w.message for w in _budget_warnings(owner['id'])] == ['Budget is 80% used']

        summary = client.get(url, headers=owner['headers']).get_json()['summary']
        assert summary['used_budget'] == '0.80'
        assert summary['remaining'] == '0.20'
        assert summary['percent_used'] == 80


class TestListExpenses:
    def test_summary_and_order(self, client, team):
        url = _expenses_url(team['project']['id'])
        headers = team['editor']['headers']
        client.post(url, json={'amount': '100', 'description': 'Old', 'date': '2024-11-01'}, headers=headers)
        client.post(url, json={'amount': '250.25', 'description': 'New', 'date': '2024-11-10'}, headers=headers)

        body = client.get(url, headers=team['viewer']['headers']).get_json()
        assert [e['description'] for e in body['expenses']] == ['New', 'Old']
        assert body['expenses'][0]['created_by_name'] == team['editor']['name']
        assert body['summary'] == {
            'total_budget': '1000.00',
            'used_budget': '350.25',
            'remaining': '649.75',
            'percent_used': 35,
        }

    def test_empty_project_summary(self, client, team):
        body = client.get(_expenses_url(team['project']['id']), headers=team['viewer']['headers']).get_json()
        assert body['expenses'] == []
        assert body['summary']['used_budget'] == '0.00'
        assert body['summary']['percent_used'] == 0

    def test_category_summary(self, client, team):
        url = _expenses_url(team['project']['id'])
        headers = team['editor']['headers']
        client.post(url, json={'amount': 30, 'description': 'a', 'category': 'Venue'}, headers=headers)
        client.post(url, json={'amount': 20, 'description': 'b', 'category': 'Venue'}, headers=headers)
        client.post(url, json={'amount': 10, 'description': 'c'}, headers=headers)

        resp = client.get(f"{url}/summary/categories", headers=team['viewer']['headers'])
        assert resp.status_code == 200
        assert resp.get_json() == [
            {'category': 'Venue', 'total': '50.00', 'count': 2},
            {'category': 'General', 'total': '10.00', 'count': 1},
        ]


class TestUpdateDeleteExpense:
    def _create(self, client, team):
        return client.post(
            _expenses_url(team['project']['id']),
            json={'amount': 40, 'description': 'Banners', 'category': 'Marketing'},
            headers=team['editor']['headers'],
        ).get_json()

    def test_partial_update(self, client, team):
        expense = self._create(client, team)
        resp = client.put(
            f"{_expenses_url(team['project']['id'])}/{expense['id']}",
            json={'amount': '45.5', 'description': None},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['amount'] == '45.50'
        assert body['description'] == 'Banners'
        assert body['category'] == 'Marketing'

        feed = client.get(f"/api/projects/{team['project']['id']}/activities", headers=team['owner']['headers']).get_json()
        assert feed[0]['action'] == 'Updated expense: Banners'

    def test_update_rejects_bad_amount(self, client, team):
        expense = self._create(client, team)
        resp = client.put(
            f"{_expenses_url(team['project']['id'])}/{expense['id']}",
            json={'amount': -1},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 400

    def test_blank_date_keeps_stored_date(self, client, team):
        expense = self._create(client, team)
        resp = client.put(
            f"{_expenses_url(team['project']['id'])}/{expense['id']}",
            json={'date': ''},
            headers=team['editor']['headers'],
        )
        assert resp.status_code == 200
        assert resp.get_json()['date'] == expense['date']

    def test_delete_requires_admin(self, client, team):
        expense = self._create(client, team)
        url = f"{_expenses_url(team['project']['id'])}/{expense['id']}"
        assert client.delete(url, headers=team['editor']['headers']).status_code == 403

        resp = client.delete(url, headers=team['admin']['headers'])
        assert resp.status_code == 200
        assert resp.get_json() == {'message': 'Expense deleted.'}

        feed = client.get(f"/api/projects/{team['project']['id']}/activities", headers=team['owner']['headers']).get_json()
        assert feed[0]['action'] == 'Deleted expense: Banners'

    def test_missing_expense(self, client, team):
        url = f"{_expenses_url(team['project']['id'])}/nope"
        assert client.put(url, json={'amount': 1}, headers=team['editor']['headers']).status_code == 404
        assert client.delete(url, headers=team['admin']['headers']).status_code == 404
