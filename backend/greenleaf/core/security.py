"""Clerk session token verification.

Clerk issues short-lived RS256 session JWTs. They are verified locally with the
instance's PEM public key, so no network call is made per request.
"""
import logging
import time
from typing import Optional

import jwt

from greenleaf.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]
LEEWAY_SECONDS = 5


def decode_session_token(token: str) -> Optional[str]:
    """Return the Clerk user id (`sub`) of a valid session token, else None."""
    if not settings.CLERK_JWT_KEY:
        logger.warning("CLERK_JWT_KEY not configured - session tokens cannot be verified")
        return None

    try:
        claims = jwt.decode(
            token,
            settings.CLERK_JWT_KEY,
            algorithms=ALGORITHMS,
            leeway=LEEWAY_SECONDS,
            options={"require": ["exp", "sub"], "verify_aud": False},
        )
    except jwt.PyJWTError as e:
        logger.info(f"Session token rejected: {type(e).__name__}")
        return None

    nbf = claims.get("nbf")
    if nbf is not None and nbf > time.time() + LEEWAY_SECONDS:
        return None

    azp = claims.get("azp")
    if settings.CLERK_AUTHORIZED_PARTIES and azp not in settings.CLERK_AUTHORIZED_PARTIES:
        logger.info(f"Session token from unauthorized party: {azp}")
        return None

    return claims.get("sub")
