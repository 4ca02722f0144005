"""Rate limit enforcement on the sign-in endpoints."""

from collections.abc import Iterator

import pytest
from httpx import AsyncClient

from rfc_app.core.config import settings
from rfc_app.core.rate_limiting import limiter

_START = "/api/v1/auth/login/start"
_VERIFY = "/api/v1/auth/login/verify"


@pytest.fixture
def enabled_limiter(disable_rate_limiting: None) -> Iterator[None]:  # noqa: ARG001
    """Turn the shared limiter back on with a clean slate."""
    limiter.enabled = True
    limiter.reset()
    yield
    limiter.reset()
    limiter.enabled = False


class TestLoginStartLimit:
    """POST /auth/login/start is capped per client."""

    async def test_excess_requests_get_429(
        self, client: AsyncClient, enabled_limiter: None  # noqa: ARG002
    ):
        """The request past the limit is rejected with Retry-After."""
        allowed = int(settings.rate_limit_login_start.split("/")[0])
        for _ in range(allowed):
            resp = await client.post(_START, json={"email": "spam@example.com"})
            assert resp.status_code == 200

        resp = await client.post(_START, json={"email": "spam@example.com"})

        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "RATE_LIMITED"
        assert "Retry-After" in resp.headers


class TestLoginVerifyLimit:
    """POST /auth/login/verify is capped per client."""

    async def test_excess_attempts_get_429(
        self, client: AsyncClient, enabled_limiter: None  # noqa: ARG002
    ):
        """Guessing stops at the limit, whatever the guesses return."""
        allowed = int(settings.rate_limit_login_verify.split("/")[0])
        payload = {"user_id": 1, "code": "123456"}
        for _ in range(allowed):
            resp = await client.post(_VERIFY, json=payload)
            assert resp.status_code == 401

        resp = await client.post(_VERIFY, json=payload)

        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "RATE_LIMITED"
