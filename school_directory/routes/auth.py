"""
Authentication routes backing the login popup: sign-up, sign-in,
sign-out and password reset.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import logging
import uuid

from school_directory.config import settings
from school_directory.dependencies import get_store
from school_directory.models import User
from school_directory.schemas import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from school_directory.services import user_service
from school_directory.services.errors import ValidationError
from school_directory.services.row_store import RowStore
from school_directory.utils.jwt_auth import (
    COOKIE_NAME,
    RESET_TOKEN_TYPE,
    create_reset_token,
    create_user_token,
    get_current_user,
    verify_token,
)
from school_directory.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(response: Response, user: User) -> TokenResponse:
    token = create_user_token(user)
    max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    # httpOnly cookie keeps the token away from page scripts
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
    )
    return TokenResponse(
        access_token=token,
        expires_in=max_age,
        user=UserResponse.model_validate(user),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["signup"])
async def signup(
    request: Request,
    response: Response,
    payload: SignupRequest,
    store: RowStore = Depends(get_store),
):
    """Create an account with the default "user" role and sign it in."""
    user = await user_service.create_user(
        store,
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
    )
    return _token_response(response, user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    store: RowStore = Depends(get_store),
):
    """
    Sign in with email and password.

    Raises:
        HTTPException: 401 if the credentials do not match
    """
    user = await user_service.authenticate(store, payload.email, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Incorrect email or password"}
        )
    logger.info(f"User {user.id} signed in")
    return _token_response(response, user)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return {"message": "Signed out"}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(RATE_LIMITS["password_reset"])
async def request_password_reset(
    request: Request,
    payload: PasswordResetRequest,
    store: RowStore = Depends(get_store),
):
    """
    Start a password reset.

    The answer is the same whether or not the account exists. The token is
    only written to the DEBUG log when LOG_RESET_TOKENS is enabled.
    """
    user = await user_service.get_user_by_email(store, payload.email)
    if user is not None:
        token = create_reset_token(user)
        logger.info(f"Password reset requested for user {user.id}")
        if settings.LOG_RESET_TOKENS:
            logger.debug(f"Reset token for user {user.id}: {token}")
    else:
        logger.info(f"Password reset requested for unknown email {payload.email}")
    return {"message": "If an account exists for this email, a reset link has been sent"}


@router.post("/password-reset/confirm")
async def confirm_password_reset(payload: PasswordResetConfirm, store: RowStore = Depends(get_store)):
    claims = verify_token(payload.token, expected_type=RESET_TOKEN_TYPE)
    try:
        user_id = uuid.UUID(claims.get("sub", ""))
    except ValueError:
        raise ValidationError("Reset link is invalid or has already been used")

    await user_service.reset_password(store, user_id, claims.get("pwd", ""), payload.new_password)
    return {"message": "Password updated"}
