"""
System endpoint and error handling tests.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from budgetboard.errors import (
    ConflictError,
    ForeignKeyError,
    InternalError,
    ValidationError,
    translate_db_error,
)


class TestSystemEndpoints:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['status'] == 'ok'
        assert body['timestamp'].endswith('Z')

    def test_banner(self, client):
        resp = client.get('/')
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['health'] == '/health'
        assert body['version']

    def test_unknown_route(self, client):
        resp = client.get('/api/nothing-here')
        assert resp.status_code == 404
        assert resp.get_json() == {'message': 'Route not found.'}


class TestCors:
    def test_frontend_origin_allowed(self, client, app):
        origin = app.config['FRONTEND_URL']
        resp = client.get('/health', headers={'Origin': origin})
        assert resp.headers['Access-Control-Allow-Origin'] == origin
        assert 'Authorization' in resp.headers['Access-Control-Allow-Headers']

    def test_other_origin_not_echoed(self, client):
        resp = client.get('/health', headers={'Origin': 'http://evil.example'})
        assert 'Access-Control-Allow-Origin' not in resp.headers


class _FakeDriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


class TestDbErrorTranslation:
    @pytest.mark.parametrize("pgcode,expected", [
        ("23505", ConflictError),
        ("23503", ForeignKeyError),
        ("22P02", ValidationError),
        ("23502", ValidationError),
        ("23514", ValidationError),
        ("40001", InternalError),
    ])
    def test_postgres_codes(self, pgcode, expected):
        exc = IntegrityError("INSERT ...", {}, _FakeDriverError("boom", pgcode=pgcode))
        assert type(translate_db_error(exc)) is expected

    def test_invalid_id_message(self):
        exc = IntegrityError("SELECT ...", {}, _FakeDriverError("bad uuid", pgcode="22P02"))
        assert translate_db_error(exc).message == 'Invalid ID format.'

    @pytest.mark.parametrize("message,expected", [
        ("UNIQUE constraint failed: users.email", ConflictError),
        ("FOREIGN KEY constraint failed", ForeignKeyError),
        ("NOT NULL constraint failed: expenses.date", ValidationError),
        ("CHECK constraint failed: ck_expenses_amount_positive", ValidationError),
    ])
    def test_sqlite_messages(self, message, expected):
        exc = IntegrityError("INSERT ...", {}, _FakeDriverError(message))
        assert type(translate_db_error(exc)) is expected

    def test_constraint_failure_in_request_is_400(self, client, team, monkeypatch):
        from budgetboard.services import project_service

        def violate(*args, **kwargs):
            raise IntegrityError("UPDATE ...", {}, _FakeDriverError("CHECK constraint failed: ck_projects_budget"))

        monkeypatch.setattr(project_service, 'list_projects', violate)
        resp = client.get('/api/projects', headers=team['owner']['headers'])
        assert resp.status_code == 400
        assert resp.get_json() == {'message': 'Invalid or missing field value.'}

    def test_other_statement_errors_are_500(self, client, team, monkeypatch):
        from sqlalchemy.exc import OperationalError
        from budgetboard.services import project_service

        def fail(*args, **kwargs):
            raise OperationalError("SELECT ...", {}, _FakeDriverError("database is locked"))

        monkeypatch.setattr(project_service, 'list_projects', fail)
        resp = client.get('/api/projects', headers=team['owner']['headers'])
        assert resp.status_code == 500
        assert resp.get_json() == {'message': 'Internal server error'}


class TestUnexpectedErrors:
    def test_hidden_outside_development(self, client, team, monkeypatch):
        from budgetboard.services import project_service

        def explode(*args, **kwargs):
            raise RuntimeError("secret detail")

        monkeypatch.setattr(project_service, 'list_projects', explode)
        resp = client.get('/api/projects', headers=team['owner']['headers'])
        assert resp.status_code == 500
        assert resp.get_json() == {'message': 'Internal server error'}

    def test_stack_in_development(self, client, team, monkeypatch, app):
        from budgetboard.services import project_service

        def explode(*args, **kwargs):
            raise RuntimeError("secret detail")

        monkeypatch.setattr(project_service, 'list_projects', explode)
        monkeypatch.setitem(app.config, 'APP_ENV', 'development')
        resp = client.get('/api/projects', headers=team['owner']['headers'])
        assert resp.status_code == 500
        body = resp.get_json()
        assert body['message'] == 'secret detail'
        assert 'RuntimeError' in body['stack']
