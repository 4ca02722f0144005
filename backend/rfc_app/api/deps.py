"""Shared dependencies for API endpoints.

Builds the core components per request from the request's session, and
resolves the signed-in user from the session cookie.
"""

from typing import Annotated

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rfc_app.core.auth import decode_jwt
from rfc_app.core.config import settings
from rfc_app.core.database import get_db
from rfc_app.core.errors import UnauthorizedError
from rfc_app.models import User
from rfc_app.repositories.comment_repository import CommentStore
from rfc_app.repositories.user_repository import UserStore
from rfc_app.services.auth_session import AuthSessionCoordinator
from rfc_app.services.login_token_service import LoginTokenService

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_coordinator(db: DbSession) -> AuthSessionCoordinator:
    """Sign-in coordinator bound to the request session."""
    return AuthSessionCoordinator(UserStore(db), LoginTokenService(db))


def get_comment_store(db: DbSession) -> CommentStore:
    """Comment store bound to the request session."""
    return CommentStore(db)


async def get_current_user_id(request: Request) -> int:
    """User id from the session cookie.

    Security: never says WHY auth failed (missing, expired, bad signature).

    Raises:
        UnauthorizedError: For any missing or invalid cookie.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise UnauthorizedError()
    try:
        return decode_jwt(token, settings.auth_secret.get_secret_value())
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        raise UnauthorizedError() from exc


CurrentUserId = Annotated[int, Depends(get_current_user_id)]


async def get_current_user(user_id: CurrentUserId, db: DbSession) -> User:
    """Full User for the session cookie.

    Raises:
        UnauthorizedError: If the user no longer exists.
    """
    user = await UserStore(db).get_by_id(user_id)
    if user is None:
        raise UnauthorizedError()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
Coordinator = Annotated[AuthSessionCoordinator, Depends(get_coordinator)]
Comments = Annotated[CommentStore, Depends(get_comment_store)]
