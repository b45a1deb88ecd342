"""User model holding credentials, inbox flags and the owned message list."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .message import Message


class User(Base):
    """Registered inbox owner.

    ``username`` is deliberately not unique at the table level: unverified
    sign-ups may share a name until one of them verifies.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(20), index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    verify_code: Mapped[str] = mapped_column(String(6), default="")
    verify_code_expiry: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_accepting_messages: Mapped[bool] = mapped_column(Boolean, default=True)
    anon_shield: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    messages: Mapped[list["Message"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="Message.id",
    )
