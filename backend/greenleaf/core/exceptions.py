"""
Safe HTTP errors for the storefront API.

Generic messages go to the client, details go to the log.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class BusinessError:
    """Store-domain exceptions with non-leaky messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        404 for a missing strain, cart item or order.

        Example:
            if not strain:
                raise BusinessError.not_found("Strain")
        """
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")

        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Same 401 for a missing, expired or forged session token."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in to perform this action",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an admin to perform this action",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business rule errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Cart is empty", "Insufficient inventory"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for resource conflicts.
        Example: "A strain with this slug already exists"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def bad_gateway(provider: str, original_error: Exception = None) -> HTTPException:
        """502 when a hosted provider (Stripe, Clerk) fails us."""
        logger.error(f"{provider} call failed: {original_error}", exc_info=original_error is not None)
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{provider} is unavailable. Please try again later.",
        )

    @staticmethod
    def rate_limit_exceeded(detail: str = "Too many requests", retry_after: int = 60, limit: int = 0) -> HTTPException:
        """429 - Too many requests."""
        logger.warning(f"Rate limit exceeded: {detail}")
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )
