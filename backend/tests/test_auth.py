"""
Authentication and session tests.

Verifies:
- Login returns a token, role and permission list
- Unknown user and wrong password fail identically
- Expired, tampered, orphaned and deactivated sessions are rejected
- Permission edits are visible on the next request
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from portal.errors import (
    InvalidCredentialsError,
    TokenExpiredError,
    TokenInvalidError,
    UserInactiveError,
    UserNotFoundError,
)
from portal.models import SystemEvent
from portal.services import auth_service, permission_service, session_service, user_service

from .conftest import TEST_PASSWORD, auth_headers, get_auth_token


class TestLogin:
    def test_login_returns_token_and_summary(self, client, clerk):
        response = client.post('/auth/login', json={'username': 'clerk', 'password': TEST_PASSWORD})

        assert response.status_code == 200
        data = response.get_json()
        assert data['token']
        assert data['role'] == 'user'
        assert data['id'] == clerk.id
        assert data['username'] == 'clerk'
        assert 'view_folder' in data['permissions']
        assert 'password' not in data
        assert 'password_hash' not in data

    def test_login_sets_last_login_and_records_event(self, client, clerk, db_session):
        get_auth_token(client, 'clerk')

        assert db_session.get(type(clerk), clerk.id).last_login_at is not None
        actions = [e.action for e in db_session.query(SystemEvent).all()]
        assert "User logged in" in actions

    def test_unknown_user_and_wrong_password_are_indistinguishable(self, client, clerk):
        unknown = client.post('/auth/login', json={'username': 'nobody', 'password': TEST_PASSWORD})
        wrong = client.post('/auth/login', json={'username': 'clerk', 'password': 'Wrong123!pass'})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.get_json() == wrong.get_json()
        assert unknown.get_json()['error'] == 'InvalidCredentials'

    def test_username_match_is_case_sensitive(self, clerk):
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate('CLERK', TEST_PASSWORD)

    def test_deactivated_user_cannot_log_in(self, clerk, super_admin):
        user_service.update_user(None, clerk.id, {'is_active': False})

        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate('clerk', TEST_PASSWORD)

    def test_missing_fields_rejected(self, client, seeded):
        response = client.post('/auth/login', json={'username': 'clerk'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'ValidationError'

    def test_logout_records_event(self, client, clerk_headers, db_session):
        response = client.post('/auth/logout', headers=clerk_headers)

        assert response.status_code == 200
        actions = [e.action for e in db_session.query(SystemEvent).all()]
        assert "User logged out" in actions


class TestSessionResolution:
    def test_me_returns_fresh_user(self, client, clerk_headers):
        response = client.get('/auth/me', headers=clerk_headers)

        assert response.status_code == 200
        assert response.get_json()['username'] == 'clerk'
        assert response.get_json()['ministry'] == 'Finance'

    def test_missing_header_is_unauthorized(self, client, seeded):
        response = client.get('/auth/me')

        assert response.status_code == 401
        assert response.get_json()['error'] == 'Unauthorized'

    def test_expired_token(self, app, clerk):
        past = datetime.now(timezone.utc) - timedelta(hours=3)
        token = jwt.encode(
            {'sub': str(clerk.id), 'iat': past, 'exp': past + timedelta(hours=1)},
            app.config['JWT_SECRET'],
            algorithm='HS256',
        )

        with pytest.raises(TokenExpiredError):
            session_service.resolve_session(token)

    def test_token_signed_with_other_secret(self, clerk):
        token = jwt.encode(
            {'sub': str(clerk.id), 'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
            'another-secret-that-is-also-long-enough-123',
            algorithm='HS256',
        )

        with pytest.raises(TokenInvalidError):
            session_service.resolve_session(token)

    def test_garbage_token_over_http(self, client, seeded):
        response = client.get('/auth/me', headers=auth_headers('not-a-jwt'))

        assert response.status_code == 401
        assert response.get_json()['error'] == 'TokenInvalid'

    def test_deleted_user_token_is_rejected(self, clerk, super_admin):
        token = session_service.issue_token(clerk)
        user_service.delete_user(None, clerk.id)

        with pytest.raises(UserNotFoundError):
            session_service.resolve_session(token)

    def test_deactivated_user_token_is_rejected(self, clerk, super_admin):
        token = session_service.issue_token(clerk)
        user_service.update_user(None, clerk.id, {'is_active': False})

        with pytest.raises(UserInactiveError):
            session_service.resolve_session(token)

    def test_role_edit_visible_on_next_request(self, client, clerk):
        headers = auth_headers(get_auth_token(client, 'clerk'))
        before = client.get('/auth/me', headers=headers).get_json()
        assert 'view_folder' in before['permissions']

        permission_service.revoke_permission_from_role('user', 'view_folder')

        after = client.get('/auth/me', headers=headers).get_json()
        assert 'view_folder' not in after['permissions']


class TestPasswords:
    def test_hash_is_bcrypt_and_verifies(self, seeded):
        hashed = auth_service.hash_password(TEST_PASSWORD)

        assert hashed.startswith('$2')
        assert auth_service.verify_password(TEST_PASSWORD, hashed)
        assert not auth_service.verify_password('Other123!pass', hashed)

    def test_malformed_hash_does_not_verify(self, seeded):
        assert auth_service.verify_password(TEST_PASSWORD, 'not-a-hash') is False

    @pytest.mark.parametrize('password', [
        'Sh0rt!',
        'alllowercase1!',
        'ALLUPPERCASE1!',
        'NoDigitsHere!',
        'NoSpecial123',
    ])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(auth_service.PasswordValidationError):
            auth_service.validate_password_strength(password)
