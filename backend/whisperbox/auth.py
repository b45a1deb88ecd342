"""Sign-up, email verification and sign-in routes."""
import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter, Depends, HTTPException, Query, status
from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .dependencies import get_db_session, token_payload
from .mailer import MailDeliveryError, VerificationMailer, get_mailer
from .models import User
from .schemas import (
    ApiResponse,
    SignIn,
    SignInResponse,
    SignUp,
    VerifyCode,
    compute_expiry,
    username_errors,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


def generate_verify_code() -> str:
    """Six decimal digits, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


async def find_verified_user(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(
        select(User).where(User.username == username, User.is_verified.is_(True))
    )
    return result.scalars().first()


@router.post("/sign-up", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: SignUp,
    session: AsyncSession = Depends(get_db_session),
    mailer: VerificationMailer = Depends(get_mailer),
) -> ApiResponse:
    """Register an unverified account and email it a verification code."""

    if await find_verified_user(session, payload.username) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username is already taken",
        )

    result = await session.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if user is not None and user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email",
        )

    # Other pending sign-ups under the same name are left untouched
    if user is None:
        user = User(username=payload.username, email=payload.email)
        session.add(user)

    settings = get_settings()
    code = generate_verify_code()
    user.username = payload.username
    user.email = payload.email
    user.password_hash = hash_password(payload.password)
    user.verify_code = code
    user.verify_code_expiry = compute_expiry(settings.verify_code_expires_minutes)
    user.is_verified = False
    await session.commit()

    # The account stays in place even if the email cannot be delivered
    try:
        await mailer.send_verification_email(payload.email, payload.username, code)
    except MailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    logger.info("Registered unverified user %s", payload.username)
    return ApiResponse(message="User registered successfully. Please verify your email")


@router.post("/verify-code", response_model=ApiResponse)
async def verify_code(
    payload: VerifyCode, session: AsyncSession = Depends(get_db_session)
) -> ApiResponse:
    """Mark an account verified when the emailed code matches and is still fresh."""

    result = await session.execute(
        select(User).where(User.username == payload.username).order_by(User.id.desc())
    )
    candidates = list(result.scalars().all())
    if not candidates:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if any(user.is_verified for user in candidates):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Account is already verified",
        )

    user = next((u for u in candidates if u.verify_code == payload.code), None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect verification code",
        )

    if user.verify_code_expiry < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification code has expired, please sign up again",
        )

    user.is_verified = True
    await session.commit()
    logger.info("User %s verified", user.username)
    return ApiResponse(message="Account verified successfully")


@router.post("/sign-in", response_model=SignInResponse)
async def sign_in(
    payload: SignIn, session: AsyncSession = Depends(get_db_session)
) -> SignInResponse:
    """Authenticate by email or username and return a JWT access token."""

    settings = get_settings()
    result = await session.execute(
        select(User).where(
            or_(User.email == payload.identifier, User.username == payload.identifier),
            User.is_verified.is_(True),
        )
    )
    user = result.scalars().first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expires_minutes
    )
    encoded = jwt.encode(
        {**token_payload(user), "exp": int(expires_at.timestamp())},
        settings.secret_key,
        algorithm="HS256",
    )
    return SignInResponse(message="Signed in", access_token=encoded, expires_at=expires_at)


@router.get("/check-username-unique", response_model=ApiResponse)
async def check_username_unique(
    username: str = Query(default=""),
    session: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    """Tell the sign-up form whether a name is free among verified users."""

    errors = username_errors(username)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=", ".join(errors),
        )

    if await find_verified_user(session, username) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username is already taken",
        )

    return ApiResponse(message="Username is unique")
