"""One-time numeric login codes.

Per-user lifecycle of a code:

    NoPendingLogin -> PendingLogin -> Verified | Expired | Superseded

- issue() always clears the user's earlier codes before inserting, so only
  the most recently issued code can ever verify.
- verify() consumes a matching live code in the same statement that checks
  it, so a code succeeds at most once.
- Expiry uses the store clock exclusively (``store_epoch_now``).
"""

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from rfc_app.core.config import settings
from rfc_app.core.database import store_epoch_now, translate_store_errors
from rfc_app.models.login_token import LoginToken

logger = logging.getLogger(__name__)

_CODE_MIN = 100_000
_CODE_SPAN = 900_000

# SQLite INTEGER range; ids outside it cannot name a row
_SQLITE_INT_MIN = -(2**63)
_SQLITE_INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class IssuedCode:
    """A freshly issued login code.

    Attributes:
        code: Six-digit code to deliver out of band.
        expires_at: Expiry as Unix epoch seconds (store clock).
    """

    code: str
    expires_at: int


def generate_code() -> str:
    """Random code in 100000-999999 from the OS CSPRNG."""
    return str(_CODE_MIN + secrets.randbelow(_CODE_SPAN))


class LoginTokenService:
    """Issues, verifies and expires login codes for one session."""

    def __init__(self, db: AsyncSession, *, ttl_minutes: int | None = None) -> None:
        self._db = db
        self._ttl_seconds = (
            ttl_minutes if ttl_minutes is not None else settings.login_code_ttl_minutes
        ) * 60

    async def issue(self, user_id: int) -> IssuedCode:
        """Replace any pending code for ``user_id`` with a new one.

        Args:
            user_id: User requesting to sign in.

        Returns:
            The new code and its expiry.
        """
        with translate_store_errors():
            await self._db.execute(
                delete(LoginToken)
                .where(LoginToken.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            token = LoginToken(
                user_id=user_id,
                token=generate_code(),
                expires_at=store_epoch_now() + self._ttl_seconds,
            )
            self._db.add(token)
            await self._db.flush()
            await self._db.refresh(token)
        return IssuedCode(code=token.token, expires_at=token.expires_at)

    async def verify(self, user_id: int, code: str) -> bool:
        """Consume ``code`` if it is the user's live code.

        Wrong, expired, already used and never issued codes all return
        False; callers must not tell them apart.

        Args:
            user_id: User the code was issued to.
            code: Code as entered.

        Returns:
            True if a live matching code existed and is now consumed.
        """
        if not _SQLITE_INT_MIN <= user_id <= _SQLITE_INT_MAX:
            return False
        stmt = delete(LoginToken).where(
            LoginToken.user_id == user_id,
            LoginToken.token == code.strip(),
            LoginToken.expires_at > store_epoch_now(),
        ).execution_options(synchronize_session=False)
        with translate_store_errors():
            result = await self._db.execute(stmt)
        consumed: int = result.rowcount  # type: ignore[attr-defined]
        return consumed > 0

    async def purge_expired(self) -> int:
        """Delete every code past its expiry.

        Bounds table growth only; verify() filters by expiry on its own.

        Returns:
            Number of deleted rows.
        """
        stmt = (
            delete(LoginToken)
            .where(LoginToken.expires_at <= store_epoch_now())
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors():
            result = await self._db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        if row_count:
            logger.debug("Purged %d expired login codes", row_count)
        return row_count
