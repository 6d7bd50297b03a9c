"""
Rate limiting utilities for API endpoints.
Uses slowapi to prevent brute force attacks and API abuse.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from school_directory.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.

    Args:
        request: FastAPI request object

    Returns:
        str: Client identifier (IP address)
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Get first IP in chain (original client)
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=["100/hour"],
    storage_uri="memory://",  # Use in-memory storage (for production, consider Redis)
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for specific use cases
RATE_LIMITS = {
    "login": "5/minute",  # Allow only 5 login attempts per minute per IP
    "signup": "10/hour",
    "password_reset": "5/hour",
    "upload": "20/hour",  # School saves carrying image uploads
    "delete": "30/hour",
}
