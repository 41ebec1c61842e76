"""Clerk Backend API lookups. Session tokens themselves are verified locally."""
from typing import Optional

import requests

from greenleaf.core.config import settings
from greenleaf.core.log_config import auth_logger as logger


REQUEST_TIMEOUT_SECONDS = 5
ADMIN_ROLE = "admin"


class IdentityProviderError(RuntimeError):
    pass


def fetch_user(user_id: str) -> Optional[dict]:
    """Return the Clerk user record, or None when Clerk has no such user."""
    if not settings.CLERK_SECRET_KEY:
        raise IdentityProviderError("CLERK_SECRET_KEY is not set")

    try:
        response = requests.get(
            f"{settings.CLERK_API_URL}/users/{user_id}",
            headers={"Authorization": f"Bearer {settings.CLERK_SECRET_KEY}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise IdentityProviderError(f"Clerk request failed: {e}") from e

    if response.status_code == 404:
        return None
    if response.status_code >= 400:
        raise IdentityProviderError(f"Clerk returned {response.status_code}")
    return response.json()


def get_user_role(user_id: str) -> Optional[str]:
    user = fetch_user(user_id)
    if user is None:
        return None
    return (user.get("public_metadata") or {}).get("role")


def is_admin(user_id: str) -> bool:
    return get_user_role(user_id) == ADMIN_ROLE
