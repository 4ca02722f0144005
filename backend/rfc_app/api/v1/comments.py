"""RFC comment endpoints.

Endpoints:
- GET /rfcs/comment-counts: comment tally per slug
- GET /rfcs/{slug}/comments: comments on one RFC, oldest first
- POST /rfcs/{slug}/comments: add a comment (signed-in users)
"""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from rfc_app.api.deps import Comments, CurrentUserId, DbSession
from rfc_app.core.responses import DataResponse
from rfc_app.models import Comment

router = APIRouter()

# Upper bound on a single comment, checked before the core sees the body
_MAX_BODY_LENGTH = 10_000


class CommentCreate(BaseModel):
    """Request body for POST /rfcs/{slug}/comments."""

    model_config = ConfigDict(extra="forbid")

    body: str = Field(max_length=_MAX_BODY_LENGTH)


class CommentOut(BaseModel):
    """Comment as shown under an RFC."""

    id: int
    document_slug: str
    user_id: int
    author_email: str | None
    body: str
    created_at: datetime | None


def _to_out(comment: Comment, author_email: str | None) -> CommentOut:
    return CommentOut(
        id=comment.id,
        document_slug=comment.document_slug,
        user_id=comment.user_id,
        author_email=author_email,
        body=comment.body,
        created_at=comment.created_at,
    )


@router.get("/comment-counts")
async def comment_counts(comments: Comments) -> DataResponse[dict[str, int]]:
    """Comment count per RFC slug; slugs without comments are omitted."""
    return DataResponse(data=await comments.counts_by_document())


@router.get("/{slug}/comments")
async def list_comments(slug: str, comments: Comments) -> DataResponse[list[CommentOut]]:
    """Comments on one RFC in the order they were written."""
    rows = await comments.list_for_document(slug)
    return DataResponse(data=[_to_out(c, c.author.email) for c in rows])


@router.post("/{slug}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    slug: str,
    payload: CommentCreate,
    user_id: CurrentUserId,
    comments: Comments,
    db: DbSession,
) -> DataResponse[CommentOut]:
    """Add a comment as the signed-in user.

    400 if the body is blank, 404 if the signed-in user no longer exists.
    """
    comment = await comments.add(slug, user_id, payload.body)
    await db.commit()
    await db.refresh(comment, attribute_names=["author"])
    return DataResponse(data=_to_out(comment, comment.author.email))
