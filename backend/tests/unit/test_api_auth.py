"""Tests for the sign-in endpoints.

Drives the full two-step flow over HTTP: start, verify, session cookie,
/me and logout.
"""

from httpx import AsyncClient

from rfc_app.core.config import settings

_START = "/api/v1/auth/login/start"
_VERIFY = "/api/v1/auth/login/verify"
_ME = "/api/v1/auth/me"
_LOGOUT = "/api/v1/auth/logout"
_EMAIL = "reader@example.com"


async def _start(client: AsyncClient, email: str = _EMAIL) -> dict:
    resp = await client.post(_START, json={"email": email})
    assert resp.status_code == 200
    return resp.json()["data"]


def _wrong_code(code: str) -> str:
    return "100000" if code != "100000" else "100001"


class TestLoginStart:
    """POST /auth/login/start."""

    async def test_returns_user_id_and_dev_code(self, client: AsyncClient):
        """Development responses echo the code for local testing."""
        data = await _start(client)

        assert isinstance(data["user_id"], int)
        assert len(data["dev_code"]) == 6
        assert data["dev_code"].isdigit()
        assert _EMAIL in data["message"]

    async def test_same_email_same_user(self, client: AsyncClient):
        """Email case and whitespace do not create a second user."""
        first = await _start(client, _EMAIL)
        second = await _start(client, _EMAIL.upper())

        assert first["user_id"] == second["user_id"]

    async def test_hides_code_outside_development(self, client: AsyncClient):
        """The code is only sent by email in other environments."""
        original = settings.environment
        settings.environment = "staging"
        try:
            data = await _start(client)
        finally:
            settings.environment = original

        assert "dev_code" not in data

    async def test_rejects_invalid_email(self, client: AsyncClient):
        """Malformed email is a validation error."""
        resp = await client.post(_START, json={"email": "not-an-email"})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_rejects_extra_fields(self, client: AsyncClient):
        """Unknown fields are refused."""
        resp = await client.post(_START, json={"email": _EMAIL, "admin": True})

        assert resp.status_code == 400


class TestLoginVerify:
    """POST /auth/login/verify."""

    async def test_correct_code_sets_session(self, client: AsyncClient):
        """A valid code returns the user and sets the session cookie."""
        start = await _start(client)

        resp = await client.post(
            _VERIFY, json={"user_id": start["user_id"], "code": start["dev_code"]}
        )

        assert resp.status_code == 200
        assert resp.json()["data"] == {"user_id": start["user_id"], "email": _EMAIL}
        assert settings.auth_cookie_name in resp.cookies

    async def test_code_is_single_use(self, client: AsyncClient):
        """Replaying a consumed code fails."""
        start = await _start(client)
        payload = {"user_id": start["user_id"], "code": start["dev_code"]}
        assert (await client.post(_VERIFY, json=payload)).status_code == 200

        resp = await client.post(_VERIFY, json=payload)

        assert resp.status_code == 401

    async def test_wrong_code_is_generic_401(self, client: AsyncClient):
        """Failure never says why the code was rejected."""
        start = await _start(client)

        resp = await client.post(
            _VERIFY,
            json={"user_id": start["user_id"], "code": _wrong_code(start["dev_code"])},
        )

        assert resp.status_code == 401
        assert resp.json()["error"] == {
            "code": "INVALID_LOGIN_CODE",
            "message": "Invalid or expired code",
            "details": None,
        }

    async def test_unknown_user_matches_wrong_code(self, client: AsyncClient):
        """A user id that never requested a code looks like a wrong code."""
        resp = await client.post(_VERIFY, json={"user_id": 424242, "code": "123456"})

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "INVALID_LOGIN_CODE"

    async def test_out_of_range_user_id_is_generic_401(self, client: AsyncClient):
        """An id beyond the integer range fails like any other bad code."""
        resp = await client.post(_VERIFY, json={"user_id": 10**20, "code": "123456"})

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "INVALID_LOGIN_CODE"

    async def test_wrong_code_leaves_real_code_usable(self, client: AsyncClient):
        """A failed attempt does not consume the pending code."""
        start = await _start(client)
        await client.post(
            _VERIFY,
            json={"user_id": start["user_id"], "code": _wrong_code(start["dev_code"])},
        )

        resp = await client.post(
            _VERIFY, json={"user_id": start["user_id"], "code": start["dev_code"]}
        )

        assert resp.status_code == 200

    async def test_empty_code_is_validation_error(self, client: AsyncClient):
        """An empty code is rejected before reaching the store."""
        resp = await client.post(_VERIFY, json={"user_id": 1, "code": ""})

        assert resp.status_code == 400


class TestSession:
    """GET /auth/me and POST /auth/logout."""

    async def test_me_requires_cookie(self, client: AsyncClient):
        """No cookie means 401."""
        resp = await client.get(_ME)

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_me_rejects_forged_cookie(self, client: AsyncClient):
        """A cookie not signed with our secret is refused."""
        client.cookies.set(settings.auth_cookie_name, "not-a-jwt")

        resp = await client.get(_ME)

        assert resp.status_code == 401

    async def test_me_after_sign_in(self, client: AsyncClient):
        """The session cookie identifies the user."""
        start = await _start(client)
        await client.post(
            _VERIFY, json={"user_id": start["user_id"], "code": start["dev_code"]}
        )

        resp = await client.get(_ME)

        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == _EMAIL

    async def test_logout_ends_session(self, client: AsyncClient):
        """After logout /me is 401 again."""
        start = await _start(client)
        await client.post(
            _VERIFY, json={"user_id": start["user_id"], "code": start["dev_code"]}
        )

        resp = await client.post(_LOGOUT)
        assert resp.status_code == 200

        assert (await client.get(_ME)).status_code == 401
