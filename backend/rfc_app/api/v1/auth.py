"""Login code and session endpoints.

Endpoints:
- POST /auth/login/start: issue a code and email it
- POST /auth/login/verify: check the code, set the session cookie
- POST /auth/logout: clear the session cookie
- GET /auth/me: current user
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from rfc_app.api.deps import Coordinator, CurrentUser, DbSession
from rfc_app.core.auth import clear_auth_cookie, create_jwt, set_auth_cookie
from rfc_app.core.config import settings
from rfc_app.core.email import send_login_code_email
from rfc_app.core.rate_limiting import limiter
from rfc_app.core.responses import DataResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginStartRequest(BaseModel):
    """Request body for POST /auth/login/start."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class LoginVerifyRequest(BaseModel):
    """Request body for POST /auth/login/verify."""

    model_config = ConfigDict(extra="forbid")

    user_id: int
    code: str = Field(min_length=1, max_length=16)


class UserOut(BaseModel):
    """Signed-in user as returned to the front end."""

    user_id: int
    email: str


@router.post("/login/start")
@limiter.limit(settings.rate_limit_login_start)
async def start_login(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: LoginStartRequest,
    background_tasks: BackgroundTasks,
    coordinator: Coordinator,
    db: DbSession,
) -> DataResponse[dict]:
    """Issue a sign-in code for the given email.

    Creates the user on first sign-in. The code is emailed as a background
    task after the token is committed. In development the code is also
    returned in the response so the flow works without a mail provider.
    """
    login = await coordinator.request_login(body.email)
    await db.commit()

    background_tasks.add_task(
        send_login_code_email,
        to_email=login.email,
        code=login.issued_code,
    )

    data: dict = {
        "user_id": login.user_id,
        "message": f"A sign-in code has been sent to {login.email}",
    }
    if settings.is_development:
        data["dev_code"] = login.issued_code
    return DataResponse(data=data)


@router.post("/login/verify")
@limiter.limit(settings.rate_limit_login_verify)
async def verify_login(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: LoginVerifyRequest,
    response: Response,
    coordinator: Coordinator,
    db: DbSession,
) -> DataResponse[UserOut]:
    """Check a sign-in code and start a session.

    Any failure is a 401 with the same message, whatever the cause.
    """
    identity = await coordinator.verify_login(body.user_id, body.code)
    await db.commit()

    set_auth_cookie(
        response,
        create_jwt(
            user_id=identity.user_id,
            secret=settings.auth_secret.get_secret_value(),
        ),
    )
    logger.info("User %s signed in", identity.user_id)
    return DataResponse(data=UserOut(user_id=identity.user_id, email=identity.email))


@router.post("/logout")
async def logout(response: Response) -> DataResponse[dict]:
    """Clear the session cookie. No auth required."""
    clear_auth_cookie(response)
    return DataResponse(data={"message": "Signed out"})


@router.get("/me")
async def get_me(user: CurrentUser) -> DataResponse[UserOut]:
    """Return the signed-in user."""
    return DataResponse(data=UserOut(user_id=user.id, email=user.email))
