"""
Pytest fixtures for BudgetBoard backend tests.

Provides in-memory database setup, the test client, and factories for
registered users, projects and memberships.
"""

import itertools

import pytest
from budgetboard import create_app
from budgetboard.extensions import db


DEFAULT_PASSWORD = "secret123"

_email_counter = itertools.count(1)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'APP_ENV': 'testing',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
        'BCRYPT_ROUNDS': 4,
        'REMINDER_SWEEP_ENABLED': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def register_user(client, db_session):
    """
    Factory: register a user through the API.

    Returns a dict with id, name, email, token and ready-made headers.
    """
    def _register(name: str = "Test User", email: str | None = None, password: str = DEFAULT_PASSWORD) -> dict:
        email = email or f"user{next(_email_counter)}@example.com"
        resp = client.post('/api/auth/register', json={
            'name': name,
            'email': email,
            'password': password,
        })
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return {
            'id': body['user']['id'],
            'name': body['user']['name'],
            'email': body['user']['email'],
            'token': body['token'],
            'headers': auth_headers(body['token']),
        }

    return _register


@pytest.fixture(scope='function')
def create_project(client):
    """Factory: create a project as `owner` (a register_user result)."""
    def _create(owner: dict, name: str = "Community Event", total_budget="1000", **fields) -> dict:
        payload = {'name': name, 'total_budget': total_budget, **fields}
        resp = client.post('/api/projects', json=payload, headers=owner['headers'])
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _create


@pytest.fixture(scope='function')
def add_member(client):
    """Factory: invite `member` into `project_id` with `role`, acting as `inviter`."""
    def _add(project_id: str, inviter: dict, member: dict, role: str) -> dict:
        resp = client.post(
            f'/api/projects/{project_id}/members',
            json={'email': member['email'], 'role': role},
            headers=inviter['headers'],
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _add


@pytest.fixture(scope='function')
def team(register_user, create_project, add_member):
    """
    One project with a member of every role plus an outsider:

    owner (Alice), admin (Bob), editor (Carol), viewer (David), outsider (Eve).
    """
    owner = register_user("Alice Uwimana")
    admin = register_user("Bob Niyomugabo")
    editor = register_user("Carol Ingabire")
    viewer = register_user("David Mutabazi")
    outsider = register_user("Eve Outsider")

    project = create_project(owner, name="Community Event 2024", total_budget="1000")
    add_member(project['id'], owner, admin, 'admin')
    add_member(project['id'], owner, editor, 'editor')
    add_member(project['id'], owner, viewer, 'viewer')

    return {
        'project': project,
        'owner': owner,
        'admin': admin,
        'editor': editor,
        'viewer': viewer,
        'outsider': outsider,
    }
