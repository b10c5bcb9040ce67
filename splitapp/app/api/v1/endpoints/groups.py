"""
Group API endpoints.

Search, group creation, membership edits and the notification inbox that
drives the invite flow.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.db.session import get_db
from splitapp.app.domain.groups.membership_service import MembershipService
from splitapp.app.schemas.group import (
    GroupCreate,
    GroupCreateResponse,
    GroupResponse,
    AddMemberRequest,
    RemoveMemberRequest,
    UserSearchResult,
    MessageResponse,
)
from splitapp.app.schemas.notification import NotificationResponse, RespondRequest, NotificationCreate
from splitapp.app.services.dispatcher import Dispatcher, get_dispatcher
from splitapp.app.services.notification_service import NotificationService

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    query: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Case-insensitive username search."""
    return await MembershipService.search_users(db, query)


@router.post("/create", response_model=GroupCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    db: AsyncSession = Depends(get_db)
):
    """Create a group; everyone in ``memberIds`` receives an invite."""
    group = await MembershipService.create_group(db, payload.name, payload.creator_id, payload.member_ids)
    return GroupCreateResponse(group=GroupResponse.model_validate(group), message="Group created!")


@router.get("/user/{user_id}", response_model=List[GroupResponse])
async def list_user_groups(user_id: int, db: AsyncSession = Depends(get_db)):
    return await MembershipService.list_user_groups(db, user_id)


@router.get("/notifications/{user_id}", response_model=List[NotificationResponse])
async def list_notifications(user_id: int, db: AsyncSession = Depends(get_db)):
    """Pending invites and unacknowledged alerts."""
    return await NotificationService.list_for_recipient(db, user_id)


@router.post("/notifications/respond", response_model=MessageResponse)
async def respond_to_notification(
    payload: RespondRequest,
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Accept/reject an invite, or clear any other notification."""
    message = await MembershipService.respond(db, dispatcher, payload.notification_id, payload.response)
    return MessageResponse(message=message)


@router.post("/notifications/create", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(payload: NotificationCreate, db: AsyncSession = Depends(get_db)):
    """Manually send a notification (INFO by default)."""
    await NotificationService.create_notification(
        db,
        recipient_id=payload.user_id,
        sender_id=payload.sender_id,
        message=payload.message,
        type=payload.type,
    )
    await db.commit()
    return MessageResponse(message="Sent")


@router.put("/add-member", response_model=MessageResponse)
async def add_member(payload: AddMemberRequest, db: AsyncSession = Depends(get_db)):
    """Invite a user. Membership changes only once they accept."""
    await MembershipService.invite_member(db, payload.group_id, payload.member_id, payload.admin_id)
    return MessageResponse(message="Invite sent successfully")


@router.put("/remove-member", response_model=GroupResponse)
async def remove_member(payload: RemoveMemberRequest, db: AsyncSession = Depends(get_db)):
    """Remove a member directly. Any member can be removed, including the creator."""
    return await MembershipService.remove_member(db, payload.group_id, payload.member_id)
