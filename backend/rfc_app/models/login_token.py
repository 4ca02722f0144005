"""Login token model - one-time numeric sign-in codes.

Single-use and time-limited. ``expires_at`` is Unix epoch seconds computed
by the store clock, never by the application host.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfc_app.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from rfc_app.models.user import User


class LoginToken(Base, CreatedAtMixin):
    """Pending sign-in code for a user.

    At most one live row exists per user: issuing a code deletes every
    earlier row for that user first.

    Attributes:
        id: Integer primary key.
        user_id: Owning user. Deleted with the user.
        token: Six-digit numeric code.
        expires_at: Expiry as Unix epoch seconds.
        created_at: Issue timestamp (from CreatedAtMixin).
    """

    __tablename__ = "login_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "token", name="uq_login_tokens_user_token"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[int] = mapped_column(Integer, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="login_tokens")
