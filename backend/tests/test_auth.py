"""
Authentication tests.

Verifies:
- Registration validation, case-insensitive duplicate emails, derived initials
- Login never reveals whether the email exists
- Bearer token handling: missing, malformed, expired, deleted user
- Profile updates
"""

from datetime import timedelta

import jwt
import pytest

from budgetboard.extensions import db
from budgetboard.models import User
from budgetboard.services import token_service
from budgetboard.time_utils import utcnow

from conftest import DEFAULT_PASSWORD, auth_headers


class TestRegister:
    def test_register_returns_token_and_user(self, client, db_session):
        resp = client.post('/api/auth/register', json={
            'name': 'Alice Uwimana',
            'email': 'Alice@Example.com',
            'password': 'secret123',
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body['token']
        assert body['user']['email'] == 'alice@example.com'
        assert body['user']['avatar'] == 'AU'
        assert 'password' not in body['user']
        assert 'password_hash' not in body['user']

    def test_password_is_hashed(self, client, db_session):
        client.post('/api/auth/register', json={
            'name': 'Bob', 'email': 'bob@example.com', 'password': 'secret123',
        })
        user = db_session.query(User).filter_by(email='bob@example.com').one()
        assert user.password_hash != 'secret123'
        assert user.password_hash.startswith('$2')

    @pytest.mark.parametrize("payload", [
        {'email': 'x@example.com', 'password': 'secret123'},
        {'name': 'X', 'password': 'secret123'},
        {'name': 'X', 'email': 'x@example.com'},
    ])
    def test_missing_fields_rejected(self, client, db_session, payload):
        resp = client.post('/api/auth/register', json=payload)
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Name, email and password are required.'

    def test_short_password_rejected(self, client, db_session):
        resp = client.post('/api/auth/register', json={
            'name': 'X', 'email': 'x@example.com', 'password': '12345',
        })
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Password must be at least 6 characters.'

    @pytest.mark.parametrize("payload", [
        {'name': 'X', 'email': 'x@example.com', 'password': 12345678},
        {'name': ['X'], 'email': 'x@example.com', 'password': 'secret123'},
        {'name': 'X', 'email': {'a': 1}, 'password': 'secret123'},
    ])
    def test_non_string_fields_rejected(self, client, db_session, payload):
        resp = client.post('/api/auth/register', json=payload)
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Name, email and password must be strings.'

    def test_duplicate_email_case_insensitive(self, client, db_session, register_user):
        register_user("Alice", email="alice@example.com")
        resp = client.post('/api/auth/register', json={
            'name': 'Other Alice', 'email': 'ALICE@example.com', 'password': 'secret123',
        })
        assert resp.status_code == 409
        assert resp.get_json()['message'] == 'An account with this email already exists.'

    def test_single_word_name_gives_one_initial(self, register_user):
        user = register_user("cher")
        resp_user = db.session.get(User, user['id'])
        assert resp_user.avatar == 'C'


class TestLogin:
    def test_login_success(self, client, register_user):
        register_user("Alice", email="alice@example.com")
        resp = client.post('/api/auth/login', json={
            'email': 'alice@example.com', 'password': DEFAULT_PASSWORD,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['token']
        assert body['user']['email'] == 'alice@example.com'

    def test_login_email_case_insensitive(self, client, register_user):
        register_user("Alice", email="alice@example.com")
        resp = client.post('/api/auth/login', json={
            'email': 'ALICE@EXAMPLE.COM', 'password': DEFAULT_PASSWORD,
        })
        assert resp.status_code == 200

    def test_wrong_password_and_unknown_email_look_the_same(self, client, register_user):
        register_user("Alice", email="alice@example.com")
        wrong_password = client.post('/api/auth/login', json={
            'email': 'alice@example.com', 'password': 'not-the-password',
        })
        unknown_email = client.post('/api/auth/login', json={
            'email': 'nobody@example.com', 'password': DEFAULT_PASSWORD,
        })
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json() == {
            'message': 'Invalid email or password.'
        }

    def test_missing_credentials(self, client, db_session):
        resp = client.post('/api/auth/login', json={'email': 'alice@example.com'})
        assert resp.status_code == 400

    def test_non_string_credentials(self, client, db_session):
        resp = client.post('/api/auth/login', json={'email': 123, 'password': 'secret123'})
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Email and password must be strings.'


class TestTokenHandling:
    def test_me_returns_current_user(self, client, register_user):
        user = register_user("Alice")
        resp = client.get('/api/auth/me', headers=user['headers'])
        assert resp.status_code == 200
        assert resp.get_json()['id'] == user['id']

    def test_missing_header(self, client, db_session):
        resp = client.get('/api/auth/me')
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Access denied. No token provided.'

    def test_non_bearer_header(self, client, db_session):
        resp = client.get('/api/auth/me', headers={'Authorization': 'Basic abc'})
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Access denied. No token provided.'

    def test_garbage_token(self, client, db_session):
        resp = client.get('/api/auth/me', headers=auth_headers('not-a-jwt'))
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Invalid token.'

    def test_wrong_signature(self, client, register_user):
        user = register_user("Alice")
        forged = jwt.encode({'sub': user['id']}, 'some-other-secret', algorithm='HS256')
        resp = client.get('/api/auth/me', headers=auth_headers(forged))
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Invalid token.'

    def test_expired_token(self, client, register_user):
        user = register_user("Alice")
        token = token_service.issue_token(user['id'], now=utcnow() - timedelta(days=8))
        resp = client.get('/api/auth/me', headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Token expired. Please login again.'

    def test_deleted_user(self, client, register_user):
        user = register_user("Alice")
        db.session.delete(db.session.get(User, user['id']))
        db.session.commit()
        resp = client.get('/api/auth/me', headers=user['headers'])
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Invalid token. User not found.'


class TestDurations:
    @pytest.mark.parametrize("value,expected", [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("90", timedelta(seconds=90)),
        (3600, timedelta(hours=1)),
    ])
    def test_parse_duration(self, value, expected):
        assert token_service.parse_duration(value) == expected

    def test_parse_duration_rejects_garbage(self):
        with pytest.raises(ValueError):
            token_service.parse_duration("seven days")


class TestProfile:
    def test_update_name_refreshes_initials(self, client, register_user):
        user = register_user("Alice Uwimana")
        resp = client.put('/api/auth/profile', json={'name': 'Grace Hopper'}, headers=user['headers'])
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['name'] == 'Grace Hopper'
        assert body['avatar'] == 'GH'

    def test_omitted_name_keeps_value(self, client, register_user):
        user = register_user("Alice Uwimana")
        resp = client.put('/api/auth/profile', json={}, headers=user['headers'])
        assert resp.status_code == 200
        assert resp.get_json()['name'] == 'Alice Uwimana'

    def test_blank_name_rejected(self, client, register_user):
        user = register_user("Alice Uwimana")
        resp = client.put('/api/auth/profile', json={'name': '   '}, headers=user['headers'])
        assert resp.status_code == 400

    def test_non_string_name_rejected(self, client, register_user):
        user = register_user("Alice Uwimana")
        resp = client.put('/api/auth/profile', json={'name': 42}, headers=user['headers'])
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Name must be a string.'
