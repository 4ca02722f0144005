"""Two-step passwordless sign-in.

The only entry points the web layer uses for authentication:

    Anonymous --request_login--> AwaitingCode --verify_login--> Authenticated

A failed verify_login leaves the browser in AwaitingCode; it may retry or
request a new code, which supersedes the pending one. Where the
authenticated state is kept afterwards (cookie, session store) is up to the
caller.
"""

import logging
from dataclasses import dataclass

from rfc_app.core.errors import AuthFailure, ConflictError
from rfc_app.models.user import User
from rfc_app.repositories.user_repository import UserStore, normalize_email
from rfc_app.services.login_token_service import LoginTokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginRequest:
    """Outcome of request_login.

    Attributes:
        user_id: User the code belongs to (created if new).
        email: Normalized email the code must be delivered to.
        issued_code: Code for out-of-band delivery.
        expires_at: Code expiry as Unix epoch seconds.
    """

    user_id: int
    email: str
    issued_code: str
    expires_at: int


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity to hand to the session mechanism after a verified code."""

    user_id: int
    email: str


class AuthSessionCoordinator:
    """Composes UserStore and LoginTokenService into the sign-in protocol."""

    def __init__(self, users: UserStore, tokens: LoginTokenService) -> None:
        self._users = users
        self._tokens = tokens

    async def _find_or_create(self, email: str) -> User:
        user = await self._users.find_by_email(email)
        if user is not None:
            return user
        try:
            return await self._users.create(email)
        except ConflictError:
            # Lost a race with a concurrent first sign-in for this email.
            user = await self._users.find_by_email(email)
            if user is None:
                raise
            return user

    async def request_login(self, email: str) -> LoginRequest:
        """Issue a fresh code for ``email``, creating the user if needed.

        The email is assumed well formed; the web layer validates it.

        Args:
            email: Address as entered.

        Returns:
            LoginRequest with the code to deliver.
        """
        user = await self._find_or_create(normalize_email(email))
        await self._tokens.purge_expired()
        issued = await self._tokens.issue(user.id)
        logger.info("Issued login code for user %s", user.id)
        return LoginRequest(
            user_id=user.id,
            email=user.email,
            issued_code=issued.code,
            expires_at=issued.expires_at,
        )

    async def verify_login(self, user_id: int, code: str) -> AuthenticatedIdentity:
        """Check a code and return the identity it proves.

        Args:
            user_id: User id returned by request_login.
            code: Code as entered.

        Returns:
            AuthenticatedIdentity for the session mechanism.

        Raises:
            AuthFailure: For any wrong, expired, used or unknown code.
        """
        if not await self._tokens.verify(user_id, code):
            raise AuthFailure()
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise AuthFailure()
        return AuthenticatedIdentity(user_id=user.id, email=user.email)
