"""Auth test fixtures - in-memory Valkey, token manager and user factory."""

import time

import pytest

from auth.config import AuthConfig
from auth.tokens import TokenManager
from auth.types import User

TEST_JWT_SECRET = "test-access-secret-0123456789abcdef0123456789"
TEST_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012345678"


class FakeValkey:
    """In-memory stand-in for ValkeyClient covering the calls auth makes."""

    def __init__(self):
        self._data = {}
        self._expiry = {}

    def _alive(self, key):
        deadline = self._expiry.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self._data.pop(key, None)
            self._expiry.pop(key, None)
        return key in self._data

    def get(self, key):
        return self._data[key] if self._alive(key) else None

    def incr(self, key):
        value = int(self._data[key]) + 1 if self._alive(key) else 1
        self._data[key] = str(value)
        return value

    def expire(self, key, seconds):
        if not self._alive(key):
            return False
        self._expiry[key] = time.monotonic() + seconds
        return True

    def ttl(self, key):
        if not self._alive(key):
            return -2
        deadline = self._expiry.get(key)
        if deadline is None:
            return -1
        return int(deadline - time.monotonic())

    def delete(self, key):
        self._expiry.pop(key, None)
        return self._data.pop(key, None) is not None

    def ping(self):
        return True


@pytest.fixture
def fake_valkey():
    return FakeValkey()


@pytest.fixture
def auth_config():
    """Low limits so rate limit tests stay short."""
    return AuthConfig(rate_limit_attempts=3, rate_limit_window_minutes=5)


@pytest.fixture
def token_manager(auth_config):
    return TokenManager(TEST_JWT_SECRET, TEST_REFRESH_SECRET, auth_config)


@pytest.fixture
def make_user(rows):
    """Build a User model from a users row."""
    def _make(**overrides):
        return User.model_validate(rows.user(**overrides))
    return _make


@pytest.fixture
def jwt_secrets():
    """Secrets in the shape get_jwt_config() returns."""
    return {"secret": TEST_JWT_SECRET, "refresh_secret": TEST_REFRESH_SECRET}
