"""Rate limiting configuration using slowapi.

Security: the login endpoints are the only brute-force surface. A six-digit
code has 900000 values and lives for ten minutes, so verification attempts
are capped per client.

Usage in routers:
    from rfc_app.core.rate_limiting import limiter

    @router.post("/login/verify")
    @limiter.limit(settings.rate_limit_login_verify)
    async def verify_login(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from rfc_app.core.config import settings

# In-memory storage (suitable for single-instance deployment)
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Return 429 Too Many Requests with the standard error envelope."""
    # Parse retry-after from exception detail (e.g., "10 per 1 minute")
    # Fallback to 60 seconds if parsing fails
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
