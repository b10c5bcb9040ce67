"""
Authentication API endpoints.

Registration is two-step: register issues a one-time passcode by email,
verify checks it and issues the bearer token. Login only works for verified
accounts.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from splitapp.app.db.session import get_db
from splitapp.app.models.user import User
from splitapp.app.schemas.auth import (
    UserRegister,
    VerifyOTPRequest,
    UserLogin,
    TokenResponse,
    RegisterResponse,
    UserResponse,
    UserPublic,
)
from splitapp.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from splitapp.app.core.security import get_password_hash, verify_password
from splitapp.app.core.jwt import issue_user_token
from splitapp.app.core.dependencies import get_current_user
from splitapp.app.core.token_revocation import revoke_token
from splitapp.app.services.email_service import EmailService
from splitapp.app.services.otp import generate_otp, otp_matches

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(token=issue_user_token(user), user=UserPublic.model_validate(user))


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Start (or restart) registration.

    - A verified account with this email -> 400.
    - A username owned by another account -> 400.
    - An unverified account with this email is overwritten in place with the
      new username, password, phone and passcode.
    """
    email = user_data.email.strip().lower()

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user and user.is_verified:
        raise ConflictError("User already exists")

    result = await db.execute(select(User.id).where(User.username == user_data.username))
    username_owner = result.scalar_one_or_none()
    if username_owner is not None and (user is None or username_owner != user.id):
        raise ConflictError("Username already taken")

    otp, otp_expires_at = generate_otp()
    hashed_password = get_password_hash(user_data.password)

    if user is not None:
        user.username = user_data.username
        user.phone = user_data.phone
        user.hashed_password = hashed_password
        user.otp_code = otp
        user.otp_expires_at = otp_expires_at
    else:
        user = User(
            username=user_data.username,
            email=email,
            phone=user_data.phone,
            hashed_password=hashed_password,
            is_verified=False,
            otp_code=otp,
            otp_expires_at=otp_expires_at,
        )
        db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username or email already registered")

    try:
        await EmailService.send_otp_email(email, otp, user_data.username)
    except Exception:
        # The account stays pending; registering again issues a new code.
        logger.exception("Failed to send OTP email to %s", email)

    return RegisterResponse(message="OTP sent to email")


@router.post("/verify", response_model=TokenResponse)
async def verify_otp(
    payload: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db)
):
    """Check the passcode, mark the account verified and issue a token."""
    email = payload.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user:
        raise ValidationError("User not found")

    if not otp_matches(user.otp_code, user.otp_expires_at, payload.otp):
        raise ValidationError("Invalid or expired OTP")

    user.is_verified = True
    user.otp_code = None
    user.otp_expires_at = None
    await db.commit()

    logger.info("User %s verified", user.id)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Issue a token for a verified account."""
    email = credentials.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user:
        raise ResourceNotFoundError("User")

    if not user.is_verified:
        raise ValidationError("Please verify your email first")

    if not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for user %s", user.id)
        raise ValidationError("Invalid credentials")

    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Return the authenticated user."""
    user = await db.get(User, current_user["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(current_user: dict = Depends(get_current_user)):
    """Revoke the presented token."""
    revoked = await revoke_token(current_user["token"], current_user["user_id"])
    return {"message": "Logged out" if revoked else "Logout could not be recorded"}
