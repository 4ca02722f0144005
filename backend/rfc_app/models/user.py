"""User model - identity keyed by normalized email."""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfc_app.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from rfc_app.models.comment import Comment
    from rfc_app.models.login_token import LoginToken

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class User(Base, CreatedAtMixin):
    """User account for passwordless sign-in.

    Attributes:
        id: Integer primary key assigned by the store.
        email: Unique, lower-cased email address.
        password_hash: Left over from an earlier password flow. Always
            NULL for users created by this application.
        created_at: Account creation timestamp (from CreatedAtMixin).
    """

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        Text,
        unique=True,
        nullable=False,
    )
    password_hash: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    login_tokens: Mapped[list["LoginToken"]] = relationship(
        "LoginToken",
        back_populates="user",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="author",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )
