"""Token Verifier — bearer extraction, cached remote key set, JWT signature + issuer checks.

Invariants:
    - Absent/malformed Authorization header → MissingBearerError, before any IO
    - Every other failure (bad signature, unknown kid, wrong issuer, expired,
      malformed, no sub, key set unreachable) → InvalidTokenError
    - Audience is NOT verified (known, deliberate relaxation)
    - Key set fetch is bounded by a 5 second timeout; a timeout is a verification
      failure, never a process failure
    - Only the request that triggers a key set refresh waits on it; requests whose
      key is already cached never wait on the refresh lock

Design Decisions:
    - python-jose for JWS/JWT verification: accepts JWK dicts straight from the
      identity provider's certs endpoint (ADR: same library as the token issuers we test against)
    - Refresh on unknown kid, rate limited by a cooldown: tolerates key rotation
      without restart, and a flood of forged kids cannot hammer the IdP
    - Only "sig" keys are kept: Keycloak also publishes RSA-OAEP encryption keys
"""

import asyncio
import logging
import re
import time
from typing import Callable

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from weight_api.core.domain_types import Identity
from weight_api.core.errors import InvalidTokenError, MissingBearerError

logger = logging.getLogger(__name__)

_BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE | re.DOTALL)


class KeySetUnavailableError(Exception):
    """The key set endpoint could not be fetched or parsed."""


def extract_bearer(authorization: str | None) -> str:
    """Authorization header value → raw token, or MissingBearerError."""
    match = _BEARER_PATTERN.match(authorization or "")
    token = match.group(1).strip() if match else ""
    if not token:
        raise MissingBearerError()
    return token


class RemoteKeySet:
    """JWKS fetched from the identity provider and cached in-process."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 5.0,
        cache_ttl_seconds: float = 600.0,
        cooldown_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._url = url
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = http_client is None
        self._cache_ttl = cache_ttl_seconds
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._keys: list[dict] = []
        self._fetched_at: float | None = None
        self._attempts = 0
        self._last_error: KeySetUnavailableError | None = None
        self._lock = asyncio.Lock()

    async def signing_keys(self, kid: str | None) -> list[dict]:
        """Candidate JWKs for a token header kid (all keys when kid is absent)."""
        keys = self._lookup(kid)
        if keys and (self._is_fresh() or self._lock.locked()):
            return keys
        if not keys and self._is_fresh() and not self._cooldown_elapsed():
            return []
        await self._refresh()
        return self._lookup(kid)

    def _lookup(self, kid: str | None) -> list[dict]:
        if kid is None:
            return list(self._keys)
        return [k for k in self._keys if k.get("kid") == kid]

    def _is_fresh(self) -> bool:
        return (
            self._fetched_at is not None
            and self._clock() - self._fetched_at < self._cache_ttl
        )

    def _cooldown_elapsed(self) -> bool:
        return (
            self._fetched_at is None
            or self._clock() - self._fetched_at >= self._cooldown
        )

    async def _refresh(self) -> None:
        seen = self._attempts
        async with self._lock:
            if self._attempts != seen:
                # Another request refreshed while we waited; reuse its outcome
                if self._last_error is not None:
                    raise self._last_error
                return
            try:
                self._keys = await self._fetch()
            except KeySetUnavailableError as e:
                self._last_error = e
                logger.warning(
                    f"Key set fetch failed: {e}", extra={"reason": "jwks_fetch"},
                )
                raise
            else:
                self._last_error = None
                self._fetched_at = self._clock()
            finally:
                # Bumped only once the attempt is over, so waiters reuse its outcome
                self._attempts += 1
            logger.info(f"Key set refreshed ({len(self._keys)} signing keys)")

    async def _fetch(self) -> list[dict]:
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            document = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise KeySetUnavailableError(f"{type(e).__name__}: {e}") from e

        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list):
            raise KeySetUnavailableError("response has no 'keys' list")
        return [
            k for k in keys
            if isinstance(k, dict) and k.get("use", "sig") == "sig"
        ]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class TokenVerifier:
    """Verifies bearer tokens against a RemoteKeySet and an expected issuer."""

    def __init__(
        self, key_set: RemoteKeySet, issuer: str, algorithms: list[str],
    ):
        self._key_set = key_set
        self._issuer = issuer
        self._algorithms = list(algorithms)

    async def verify(self, authorization: str | None) -> Identity:
        """Authorization header value → Identity, or an AuthError subclass."""
        token = extract_bearer(authorization)

        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as e:
            raise InvalidTokenError(f"malformed token: {e}") from None

        alg = header.get("alg")
        if alg not in self._algorithms:
            raise InvalidTokenError(f"algorithm not allowed: {alg}")

        try:
            keys = await self._key_set.signing_keys(header.get("kid"))
        except KeySetUnavailableError as e:
            raise InvalidTokenError(f"key set unavailable: {e}") from None
        if not keys:
            raise InvalidTokenError(f"unknown key id: {header.get('kid')}")

        try:
            # ADR: audience deliberately not enforced
            claims = jwt.decode(
                token,
                {"keys": keys},
                algorithms=self._algorithms,
                issuer=self._issuer,
                options={"verify_aud": False},
            )
        except JOSEError as e:
            raise InvalidTokenError(str(e)) from None

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("token has no subject")
        return Identity.from_claims(claims)

    async def aclose(self) -> None:
        await self._key_set.aclose()
