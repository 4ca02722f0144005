"""Repository for RFC comments.

Comments are append-only. They reference a user through a foreign key and
an RFC document through an opaque slug that is never checked against the
document files.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from rfc_app.core.database import translate_store_errors
from rfc_app.core.errors import NotFoundError, ValidationError
from rfc_app.models.comment import Comment


class CommentStore:
    """Comment table operations bound to one session."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add(self, document_slug: str, user_id: int, body: str) -> Comment:
        """Append a comment to an RFC.

        The body is stored trimmed. The author's existence is checked by
        the foreign key on insert, not by a lookup beforehand.

        Args:
            document_slug: Slug of the RFC being discussed.
            user_id: Author's user id.
            body: Comment text.

        Returns:
            Created Comment with its server-assigned id and created_at.

        Raises:
            ValidationError: If the body is empty after trimming.
            NotFoundError: If no user has ``user_id``.
            StoreError: If the store is unavailable.
        """
        text = body.strip()
        if not text:
            raise ValidationError("Comment body must not be empty")

        comment = Comment(rfc_slug=document_slug, user_id=user_id, body=text)
        with translate_store_errors():
            try:
                async with self._db.begin_nested():
                    self._db.add(comment)
                    await self._db.flush()
            except IntegrityError as exc:
                raise NotFoundError("User", str(user_id)) from exc
            await self._db.refresh(comment)
        return comment

    async def list_for_document(self, document_slug: str) -> list[Comment]:
        """Comments on one RFC, oldest first.

        ``created_at`` has one-second resolution, so ties are broken by id,
        which follows insertion order. The author is loaded with each
        comment.

        Args:
            document_slug: Slug of the RFC.

        Returns:
            Comments in display order. Empty if there are none.
        """
        stmt = (
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.rfc_slug == document_slug)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        with translate_store_errors():
            result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def counts_by_document(self) -> dict[str, int]:
        """Number of comments per RFC slug, in a single query.

        Slugs without comments are absent from the mapping.
        """
        stmt = select(Comment.rfc_slug, func.count(Comment.id)).group_by(
            Comment.rfc_slug
        )
        with translate_store_errors():
            result = await self._db.execute(stmt)
        return {slug: count for slug, count in result.all()}
