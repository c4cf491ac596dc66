"""Auth0 user-id resolution for seeded test users.

When a test user has no configured ``*_AUTH0_ID`` the resolver logs the
user in through the OAuth2 password grant, reads ``sub`` from the returned
ID token and caches it by email. The cache is an explicit object with a TTL
and invalidation so tests can control staleness.
"""

import functools
import logging
import time
from typing import Callable, Optional

import httpx
import jwt

from seedkit.config import config
from seedkit.exceptions import ConfigurationError
from seedkit.types import TestEnvironment, TestUser

logger = logging.getLogger(__name__)


class IdentityCache:
    """email → auth0 id, with an optional TTL.

    Args:
        ttl_seconds: Entry lifetime. ``0`` (default) keeps entries until
            :meth:`invalidate` / :meth:`clear` is called.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl_seconds: float = 0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def get(self, email: str) -> Optional[str]:
        key = email.lower()
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self.ttl_seconds and self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, email: str, auth0_id: str) -> None:
        self._entries[email.lower()] = (auth0_id, self._clock())

    def invalidate(self, email: str) -> bool:
        """Drop one entry. Returns ``True`` if it was cached."""
        return self._entries.pop(email.lower(), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class IdentityResolver:
    """Resolves a stable Auth0 user id for a :class:`TestUser`.

    Args:
        environment: Supplies the password and Auth0 client settings.
        cache: Shared :class:`IdentityCache`; a private one is created if omitted.
        timeout: HTTP timeout for the token request, in seconds.
    """

    def __init__(
        self,
        environment: TestEnvironment,
        cache: Optional[IdentityCache] = None,
        timeout: float = 15.0,
    ) -> None:
        self._env = environment
        self.cache = cache if cache is not None else IdentityCache()
        self._timeout = timeout

    async def resolve(self, user: TestUser) -> str:
        """Configured id first, then the cache, then a password-grant login.

        Raises:
            ConfigurationError: Auth0 settings missing, login failed, or the
                ID token has no ``sub`` claim.
        """
        if user.auth0_id:
            return user.auth0_id

        cached = self.cache.get(user.email)
        if cached:
            return cached

        auth0_id = await self._fetch_auth0_user_id(user.email)
        self.cache.set(user.email, auth0_id)
        return auth0_id

    async def _fetch_auth0_user_id(self, email: str) -> str:
        env = self._env
        issuer = (env.auth0_issuer_base_url or "").rstrip("/")
        if not (issuer and env.auth0_client_id and env.auth0_client_secret and env.password):
            raise ConfigurationError(
                "Unable to resolve Auth0 ID. Set TEST_USER_ENTERPRISE_*_AUTH0_ID or configure "
                "AUTH0_ISSUER_BASE_URL, AUTH0_CLIENT_ID, AUTH0_CLIENT_SECRET and TEST_USER_PASSWORD.",
                missing=[
                    name for name, value in (
                        ("AUTH0_ISSUER_BASE_URL", issuer),
                        ("AUTH0_CLIENT_ID", env.auth0_client_id),
                        ("AUTH0_CLIENT_SECRET", env.auth0_client_secret),
                        ("TEST_USER_PASSWORD", env.password),
                    ) if not value
                ],
            )

        logger.info("[Identity] Resolving Auth0 id for %s via password grant", email)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{issuer}/oauth/token",
                    json={
                        "grant_type": "password",
                        "username": email,
                        "password": env.password,
                        "client_id": env.auth0_client_id,
                        "client_secret": env.auth0_client_secret,
                        "scope": "openid profile email",
                    },
                )
                resp.raise_for_status()
                id_token = resp.json().get("id_token")
        except httpx.HTTPStatusError as exc:
            raise ConfigurationError(
                f"Unable to resolve Auth0 ID for {email}: "
                f"{exc.response.status_code} {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConfigurationError(f"Unable to resolve Auth0 ID for {email}: {exc}") from exc

        if not id_token:
            raise ConfigurationError(f"Unable to resolve Auth0 ID for {email}: ID token not returned")

        try:
            payload = jwt.decode(id_token, options={"verify_signature": False})
        except jwt.PyJWTError as exc:
            raise ConfigurationError(f"Unable to resolve Auth0 ID for {email}: invalid ID token ({exc})") from exc

        sub = payload.get("sub")
        if not sub or not isinstance(sub, str):
            raise ConfigurationError(f"Unable to resolve Auth0 ID for {email}: missing sub claim in ID token")
        return sub


@functools.lru_cache(maxsize=1)
def get_identity_cache() -> IdentityCache:
    """Process-wide cache shared by every resolver built from config."""
    return IdentityCache(ttl_seconds=config.identity_cache_ttl)


def get_identity_resolver(environment: TestEnvironment) -> IdentityResolver:
    return IdentityResolver(environment, cache=get_identity_cache(), timeout=config.http_timeout)
