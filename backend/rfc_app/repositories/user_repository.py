"""Repository for User lookups and creation.

Users are resolved by email. Uniqueness is enforced by the UNIQUE
constraint on ``users.email``; the repository never relies on a prior
lookup to guarantee it.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rfc_app.core.database import translate_store_errors
from rfc_app.core.errors import ConflictError
from rfc_app.models.user import User


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class UserStore:
    """User table operations bound to one session.

    The caller owns the session and its transaction boundaries.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_by_id(self, user_id: int) -> User | None:
        """Fetch a user by primary key.

        Args:
            user_id: Primary key.

        Returns:
            User if found, None otherwise.
        """
        with translate_store_errors():
            return await self._db.get(User, user_id)

    async def find_by_email(self, email: str) -> User | None:
        """Fetch a user by email address (case-insensitive).

        Args:
            email: Email address to look up.

        Returns:
            User if found, None otherwise.

        Raises:
            StoreError: If the store is unavailable.
        """
        stmt = select(User).where(User.email == normalize_email(email))
        with translate_store_errors():
            result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, email: str) -> User:
        """Create a new user.

        Email is normalized before storage. The insert runs in a SAVEPOINT
        so a duplicate leaves the caller's session usable.

        Args:
            email: User email address.

        Returns:
            Created User with database-generated fields populated.

        Raises:
            ConflictError: If a user with this email already exists.
            StoreError: If the store is unavailable.
        """
        user = User(email=normalize_email(email))
        with translate_store_errors():
            try:
                async with self._db.begin_nested():
                    self._db.add(user)
                    await self._db.flush()
            except IntegrityError as exc:
                raise ConflictError(
                    code="EMAIL_ALREADY_EXISTS",
                    message="A user with this email already exists",
                ) from exc
            await self._db.refresh(user)
        return user
