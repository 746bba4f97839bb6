"""
Bearer-token authentication for the scheduled update endpoint.

The external scheduler sends ``Authorization: Bearer <CRON_SECRET>``.
"""
import secrets
from typing import Optional

from fastapi import Header, Request

from nhl_tracker.core.exceptions import AuthError
from nhl_tracker.core.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def verify_cron_secret(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> None:
    """
    Validate the bearer credential against CRON_SECRET.

    Settings are read from ``app.state.settings``.

    Raises:
        AuthError: If the header is missing or does not match
    """
    settings = request.app.state.settings

    if not settings.CRON_SECRET:
        if settings.is_production():
            logger.warning("CRON_SECRET not configured in production - rejecting update request")
            raise AuthError("CRON_SECRET not configured")
        logger.debug("CRON_SECRET not configured - allowing update in development mode")
        return

    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Missing bearer credential")

    token = authorization[len(BEARER_PREFIX):]
    if not secrets.compare_digest(token.encode(), settings.CRON_SECRET.encode()):
        logger.warning("Invalid bearer credential on update endpoint")
        raise AuthError("Invalid bearer credential")
