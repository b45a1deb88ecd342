"""Per-user inbox toggles: message acceptance and anon shield."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import find_verified_user
from ..dependencies import get_current_user, get_db_session
from ..models import User
from ..schemas import (
    AcceptMessagesStatus,
    AcceptMessagesUpdate,
    AnonShieldStatus,
    AnonShieldUpdate,
)

router = APIRouter(tags=["settings"])


@router.get("/accept-message", response_model=AcceptMessagesStatus)
async def get_accept_messages(
    current_user: User = Depends(get_current_user),
) -> AcceptMessagesStatus:
    return AcceptMessagesStatus(is_accepting_messages=current_user.is_accepting_messages)


@router.post("/accept-message", response_model=AcceptMessagesStatus)
async def update_accept_messages(
    payload: AcceptMessagesUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AcceptMessagesStatus:
    """Turn new anonymous messages on or off. Stored messages are untouched."""

    current_user.is_accepting_messages = payload.accept_messages
    await session.commit()
    return AcceptMessagesStatus(
        message="Message acceptance status updated successfully",
        is_accepting_messages=current_user.is_accepting_messages,
    )


@router.get("/anon-shield", response_model=AnonShieldStatus)
async def get_anon_shield(
    current_user: User = Depends(get_current_user),
) -> AnonShieldStatus:
    return AnonShieldStatus(anon_shield=current_user.anon_shield)


@router.post("/anon-shield", response_model=AnonShieldStatus)
async def update_anon_shield(
    payload: AnonShieldUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AnonShieldStatus:
    current_user.anon_shield = payload.anon_shield
    await session.commit()
    state = "enabled" if current_user.anon_shield else "disabled"
    return AnonShieldStatus(
        message=f"Anon Shield {state}",
        anon_shield=current_user.anon_shield,
    )


@router.get("/anon-status/{username}", response_model=AnonShieldStatus)
async def get_anon_status(
    username: str, session: AsyncSession = Depends(get_db_session)
) -> AnonShieldStatus:
    """Public lookup used by profile pages; only answers when the shield is on."""

    user = await find_verified_user(session, username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not user.anon_shield:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User has anon shield disabled",
        )

    return AnonShieldStatus(anon_shield=True)
