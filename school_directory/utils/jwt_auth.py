"""
JWT token-based authentication for site users and the admin back-office.
Provides token generation, verification and FastAPI dependencies that
resolve the current user and enforce roles.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.config import settings
from school_directory.database import get_db
from school_directory.models import User, UserRole
from school_directory.utils.auth import password_fingerprint

ALGORITHM = "HS256"
COOKIE_NAME = "access_token"

ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "password_reset"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, token_type: str = ACCESS_TOKEN_TYPE) -> str:
    """
    Create a JWT token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time
        token_type: Value of the "type" claim (access or password_reset)

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": token_type
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def create_reset_token(user: User) -> str:
    # Bound to the current password hash so the token stops working once used
    return create_access_token(
        {"sub": str(user.id), "pwd": password_fingerprint(user.password_hash)},
        expires_delta=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        token_type=RESET_TOKEN_TYPE,
    )


def verify_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> dict:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        expected_type: Required value of the "type" claim

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid, expired, or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"}
        )

    if payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": f"Token is not an {expected_type} token"}
        )

    return payload


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    # Priority 1: httpOnly cookie set by /auth/login
    token = request.cookies.get(COOKIE_NAME)

    # Priority 2: Authorization header
    if not token and authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]
    return token


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie)"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    FastAPI dependency resolving the signed-in user.

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user no longer exists
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = verify_token(token)
    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Token subject is malformed"}
        )

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unknown user", "message": "Please login again"}
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """FastAPI dependency allowing only admins through."""
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "message": "Admin access required"}
        )
    return user
