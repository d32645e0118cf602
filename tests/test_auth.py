import pytest
from fastapi import HTTPException

from documet.auth.security import get_current_user


class MockCredentials:
    def __init__(self, token):
        self.credentials = token


def test_valid_jwt_accepted(token_factory):
    user = get_current_user(MockCredentials(token_factory("alice")))

    assert user.user_id == "alice"


def test_expired_jwt_rejected(token_factory):
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token_factory(expired=True)))
    assert excinfo.value.status_code == 401
    assert "expired" in excinfo.value.detail


def test_wrong_secret_rejected(token_factory):
    token = token_factory(secret="some-other-secret-that-is-long-enough")

    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token))
    assert excinfo.value.status_code == 401


def test_garbage_token_rejected():
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials("not-a-jwt"))
    assert excinfo.value.status_code == 401


def test_unsafe_subject_rejected(token_factory):
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token_factory("../etc/passwd")))
    assert excinfo.value.status_code == 401
    assert "sub" in excinfo.value.detail
