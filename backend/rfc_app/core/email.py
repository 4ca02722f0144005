"""Login code delivery via the Resend API.

Plain-text email with the six-digit code. Delivery problems are logged and
swallowed: the request that issued the code has already succeeded, and the
user can ask for a new code.
"""

import logging

import httpx

from rfc_app.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


async def send_login_code_email(*, to_email: str, code: str) -> None:
    """Send a sign-in code email.

    Skipped (with a log line) when no Resend API key is configured, which
    is the normal state in local development.

    Args:
        to_email: Recipient email address.
        code: Six-digit login code.
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        logger.info("RESEND_API_KEY not set, login code email not sent")
        return

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": "Your RFC app sign-in code",
                    "text": (
                        f"Your sign-in code is {code}\n\n"
                        f"It expires in {settings.login_code_ttl_minutes} minutes. "
                        "If you didn't request this, you can safely ignore this email."
                    ),
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except httpx.HTTPError:
        logger.warning("Failed to send login code email", exc_info=True)
