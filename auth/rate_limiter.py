"""Rate limiting for login attempts.

Uses Valkey with sliding window TTL - each attempt resets the expiry.
Hammering the login endpoint keeps extending the lockout.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-identifier login rate limiting using Valkey."""

    KEY_PREFIX = "ratelimit:login:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._window_seconds = config.rate_limit_window_minutes * 60

    def _key(self, identifier: str) -> str:
        """Rate limit key for a username or email (normalized to lowercase)."""
        return f"{self.KEY_PREFIX}{identifier.strip().lower()}"

    def check_rate_limit(self, identifier: str) -> None:
        """Count an attempt and enforce the limit.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        key = self._key(identifier)

        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)

        if count > self._config.rate_limit_attempts:
            ttl = self._valkey.ttl(key)
            raise RateLimitedError(retry_after_seconds=max(ttl, 1))

    def reset_rate_limit(self, identifier: str) -> None:
        """Reset rate limit after successful login."""
        self._valkey.delete(self._key(identifier))

    def get_remaining_attempts(self, identifier: str) -> int:
        """Attempts left before the identifier is locked out."""
        current = self._valkey.get(self._key(identifier))

        if current is None:
            return self._config.rate_limit_attempts

        return max(self._config.rate_limit_attempts - int(current), 0)
