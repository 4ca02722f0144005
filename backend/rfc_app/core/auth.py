"""Session cookie helpers.

The sign-in core only proves an identity; keeping it across requests is
done here with a signed JWT in an httpOnly cookie.
"""

from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Response

from rfc_app.core.config import settings

_AUDIENCE = "rfc-app"
_ALGORITHM = "HS256"


def _session_lifetime() -> timedelta:
    return timedelta(hours=settings.auth_session_hours)


def create_jwt(
    *,
    user_id: int,
    secret: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT with standard claims.

    Args:
        user_id: User id for the sub claim.
        secret: HMAC signing secret.
        expires_delta: Time until expiration. Defaults to the session lifetime.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "aud": _AUDIENCE,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or _session_lifetime()),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_jwt(token: str, secret: str) -> int:
    """Validate a session JWT and return the user id it carries.

    Raises:
        jwt.InvalidTokenError: Bad signature, expired, wrong audience/issuer.
        KeyError: No sub claim.
        ValueError: sub is not an integer id.
    """
    payload = jwt.decode(
        token,
        secret,
        algorithms=[_ALGORITHM],
        audience=_AUDIENCE,
        issuer=settings.auth_issuer,
    )
    return int(payload["sub"])


def set_auth_cookie(response: Response, token: str) -> None:
    """Set httpOnly JWT cookie on response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.
    """
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
        max_age=int(_session_lifetime().total_seconds()),
        domain=settings.auth_cookie_domain or None,
    )


def clear_auth_cookie(response: Response) -> None:
    """Delete the session cookie. Attributes must match set_auth_cookie()."""
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        domain=settings.auth_cookie_domain or None,
    )
