"""FastAPI dependencies: DB session, Clerk identity and the cart cookie.

Session tokens are read from:
1. Authorization: Bearer header (API clients)
2. the Clerk `__session` cookie (web frontend)
Header takes precedence over cookie.
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from greenleaf.core.audit import AuditLog
from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError
from greenleaf.core.security import decode_session_token
from greenleaf.db.session import SessionLocal
from greenleaf.services import identity

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Clerk user id of the caller, or None for anonymous shoppers."""
    token = None
    if credentials:
        token = credentials.credentials
    elif settings.SESSION_COOKIE in request.cookies:
        token = request.cookies[settings.SESSION_COOKIE]

    if not token:
        return None
    return decode_session_token(token)


def require_user(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise BusinessError.unauthorized("missing or invalid session token")
    return user_id


def require_admin(request: Request, user_id: str = Depends(require_user)) -> str:
    """Admin role lives in Clerk public metadata: {"role": "admin"}."""
    try:
        allowed = identity.is_admin(user_id)
    except identity.IdentityProviderError as e:
        raise BusinessError.bad_gateway("Identity provider", e)

    if not allowed:
        AuditLog.log_access_denied(request.method, request.url.path, user_id, "not an admin")
        raise BusinessError.forbidden(f"user {user_id} is not an admin")
    return user_id


def get_cart_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(settings.CART_COOKIE)
