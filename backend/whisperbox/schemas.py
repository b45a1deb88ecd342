"""Pydantic schemas used across the backend API."""
import re
from datetime import datetime, timedelta
from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
MESSAGE_MAX_LENGTH = 300


def username_errors(value: str) -> list[str]:
    """Return every rule the username breaks, in display order."""

    errors = []
    if len(value) < 3:
        errors.append("Username must be at least 3 characters")
    if len(value) > 20:
        errors.append("Username must be no more than 20 characters")
    if not USERNAME_PATTERN.match(value):
        errors.append("Username must not contain special characters")
    return errors


def _validate_username(value: str) -> str:
    errors = username_errors(value)
    if errors:
        raise ValueError(errors[0])
    return value


Username = Annotated[str, AfterValidator(_validate_username)]


class ApiResponse(BaseModel):
    """Envelope shared by every JSON endpoint."""

    success: bool = True
    message: str | None = None

    class Config:
        populate_by_name = True


class SignUp(BaseModel):
    """Payload for account registration."""

    username: Username
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class VerifyCode(BaseModel):
    """Code submitted from the verification page."""

    username: Username
    code: str

    @field_validator("code")
    @classmethod
    def six_digits(cls, value: str) -> str:
        value = value.strip()
        if len(value) != 6 or not value.isdigit():
            raise ValueError("Verification code must be 6 digits")
        return value


class SignIn(BaseModel):
    """Credentials supplied during sign-in. ``identifier`` is an email or username."""

    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SignInResponse(ApiResponse):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class TokenData(BaseModel):
    """Information encoded into JWTs."""

    sub: str
    username: str


class MessageCreate(BaseModel):
    """Anonymous message posted to a profile link."""

    username: str = Field(min_length=1)
    content: str

    @field_validator("content")
    @classmethod
    def content_bounds(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message content must not be empty")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise ValueError(
                f"Message content must be no longer than {MESSAGE_MAX_LENGTH} characters"
            )
        return value


class MessageRead(BaseModel):
    """Inbox entry as shown on the dashboard."""

    id: int
    content: str
    created_at: datetime = Field(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class MessageList(ApiResponse):
    messages: list[MessageRead] = Field(default_factory=list)


class AcceptMessagesUpdate(BaseModel):
    accept_messages: bool = Field(validation_alias="acceptMessages")


class AcceptMessagesStatus(ApiResponse):
    is_accepting_messages: bool = Field(alias="isAcceptingMessages")


class AnonShieldUpdate(BaseModel):
    anon_shield: bool = Field(validation_alias="anonShield")


class AnonShieldStatus(ApiResponse):
    anon_shield: bool = Field(alias="anonShield")


class ProfileRead(BaseModel):
    """Signed-in user's own profile."""

    username: str
    email: EmailStr
    is_accepting_messages: bool = Field(alias="isAcceptingMessages")
    anon_shield: bool = Field(alias="anonShield")

    class Config:
        from_attributes = True
        populate_by_name = True


class PromptRequest(BaseModel):
    """Free-form prompt forwarded to the generative model."""

    prompt: str | None = None


class SuggestionsResponse(ApiResponse):
    content: str


class ModerationResponse(ApiResponse):
    response: str


def compute_expiry(minutes: int) -> datetime:
    """Return an absolute expiration timestamp for tokens and codes."""

    return datetime.utcnow() + timedelta(minutes=minutes)
