"""Anonymous message submission and inbox endpoints."""
import logging
from typing import Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import find_verified_user
from ..dependencies import get_current_user, get_db_session
from ..models import Message, User
from ..schemas import ApiResponse, MessageCreate, MessageList, MessageRead, ProfileRead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


@router.post("/send-message", response_model=ApiResponse)
async def send_message(
    payload: MessageCreate, session: AsyncSession = Depends(get_db_session)
) -> ApiResponse:
    """Append an anonymous message to a verified user's inbox.

    Nothing about the sender is recorded. Moderation is advisory and happens
    on the client before this call.
    """

    user = await find_verified_user(session, payload.username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not user.is_accepting_messages:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not accepting the messages",
        )

    session.add(Message(user_id=user.id, content=payload.content))
    await session.commit()
    logger.info("Message delivered to %s", user.username)
    return ApiResponse(message="Message sent successfully")


@router.get("/get-messages", response_model=MessageList)
async def get_messages(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> MessageList:
    """Return the signed-in user's inbox, newest first."""

    result = await session.execute(
        select(Message)
        .where(Message.user_id == current_user.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    messages: Sequence[Message] = result.scalars().all()
    return MessageList(messages=[MessageRead.model_validate(m) for m in messages])


@router.delete("/delete-messages/{message_id}", response_model=ApiResponse)
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    """Remove exactly one message owned by the signed-in user."""

    result = await session.execute(
        delete(Message).where(
            Message.id == message_id,
            Message.user_id == current_user.id,
        )
    )
    if result.rowcount == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found or already deleted",
        )

    await session.commit()
    return ApiResponse(message="Message deleted")


@router.get("/me", response_model=ProfileRead)
async def read_profile(current_user: User = Depends(get_current_user)) -> User:
    """Profile fields the dashboard needs to build the share link."""

    return current_user
