"""SQLAlchemy ORM models for the RFC app.

All models are exported from this module for convenient imports:
    from rfc_app.models import User, LoginToken, Comment

Models:
- user.py: User
- login_token.py: LoginToken (one-time sign-in codes)
- comment.py: Comment (append-only, keyed by RFC slug)
"""

from rfc_app.models.base import Base, CreatedAtMixin
from rfc_app.models.comment import Comment
from rfc_app.models.login_token import LoginToken
from rfc_app.models.user import User

__all__ = [
    "Base",
    "Comment",
    "CreatedAtMixin",
    "LoginToken",
    "User",
]
