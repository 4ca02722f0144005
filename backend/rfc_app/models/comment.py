"""Comment model - append-only discussion entries on an RFC."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfc_app.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from rfc_app.models.user import User


class Comment(Base, CreatedAtMixin):
    """Comment left by a user on an RFC document.

    The document itself lives outside the database; ``rfc_slug`` is an
    opaque key with no foreign key behind it.

    Attributes:
        id: Integer primary key.
        rfc_slug: Slug of the RFC document the comment belongs to.
        user_id: Author. Comments are deleted with their author.
        body: Trimmed, non-empty comment text.
        created_at: Creation timestamp (from CreatedAtMixin).
    """

    __tablename__ = "comments"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rfc_slug: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    author: Mapped["User"] = relationship("User", back_populates="comments")

    @property
    def document_slug(self) -> str:
        """Alias for ``rfc_slug`` under the name the web layer uses."""
        return self.rfc_slug
