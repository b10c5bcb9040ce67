"""
Group Membership Manager (Domain Logic).

Membership grows only through GROUP_INVITE notifications:

    no relation -> PENDING -> ACCEPTED | REJECTED

Accepting adds the invitee to the group's member set. Removal is a direct
edit that bypasses the invite flow and has no lower bound, so even the
creator can be removed.

Member-set changes are single INSERT ... ON CONFLICT DO NOTHING / DELETE
statements against ``group_members``, never a read-modify-write of a list.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, delete, exists, and_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from splitapp.app.models.enums import NotificationType, NotificationStatus
from splitapp.app.models.group import Group, group_members
from splitapp.app.models.notification import Notification
from splitapp.app.models.user import User
from splitapp.app.services.dispatcher import Dispatcher
from splitapp.app.services.email_service import EmailService
from splitapp.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

INVITE_RESPONSES = (NotificationStatus.ACCEPTED, NotificationStatus.REJECTED)


def _insert_ignore(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(group_members).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite.insert(group_members).on_conflict_do_nothing()
    raise RuntimeError(f"Unsupported database dialect for membership updates: {dialect}")


async def add_member(db: AsyncSession, group_id: int, user_id: int) -> None:
    """Set-add; adding an existing member is a no-op. The caller commits."""
    await db.execute(_insert_ignore(db).values(group_id=group_id, user_id=user_id))


async def is_member(db: AsyncSession, group_id: int, user_id: int) -> bool:
    stmt = select(exists().where(and_(
        group_members.c.group_id == group_id,
        group_members.c.user_id == user_id,
    )))
    return bool(await db.scalar(stmt))


async def load_group(db: AsyncSession, group_id: int) -> Optional[Group]:
    """Fetch a group with a fresh member list."""
    stmt = select(Group).where(Group.id == group_id).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user


async def _require_group(db: AsyncSession, group_id: int) -> Group:
    group = await load_group(db, group_id)
    if group is None:
        raise ResourceNotFoundError("Group", group_id)
    return group


class MembershipService:

    @staticmethod
    async def search_users(db: AsyncSession, query: Optional[str]) -> List[User]:
        """Case-insensitive substring match on username. An empty query matches nobody."""
        if not query:
            return []
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        stmt = select(User).where(User.username.ilike(f"%{escaped}%", escape="\\")).order_by(User.username)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_group(db: AsyncSession, name: str, creator_id: int, member_ids: Iterable[int]) -> Group:
        """
        Create a group with the creator as its only member and invite the rest.

        Duplicate ids and the creator's own id are dropped from the invite list.
        """
        creator = await _require_user(db, creator_id)

        group = Group(name=name, creator_id=creator.id)
        db.add(group)
        await db.flush()
        await add_member(db, group.id, creator.id)

        invitee_ids = list(dict.fromkeys(mid for mid in member_ids if mid != creator.id))
        await NotificationService.create_invites(db, group, creator, invitee_ids)
        await db.commit()

        logger.info("Group %s created by %s with %d invites", group.id, creator.id, len(invitee_ids))
        return await load_group(db, group.id)

    @staticmethod
    async def invite_member(db: AsyncSession, group_id: int, member_id: int, inviter_id: int) -> Notification:
        """
        Send a PENDING invite.

        Raises:
            ConflictError: the user is already a member
            ResourceNotFoundError: group, inviter or invitee missing
        """
        group = await _require_group(db, group_id)
        inviter = await _require_user(db, inviter_id)
        await _require_user(db, member_id)

        if await is_member(db, group.id, member_id):
            raise ConflictError("User already in group", {"group_id": group.id, "user_id": member_id})

        invites = await NotificationService.create_invites(db, group, inviter, [member_id])
        await db.commit()
        return invites[0]

    @staticmethod
    async def respond(
        db: AsyncSession,
        dispatcher: Dispatcher,
        notification_id: int,
        response: Optional[str],
    ) -> str:
        """
        Answer a notification.

        Non-invite notifications are deleted whatever the response. Invites
        take ACCEPTED or REJECTED; accepting adds the recipient to the group
        (a no-op if already a member) and queues a welcome email.

        Raises:
            ConflictError: the invite was already answered the other way
        """
        notif = await db.get(Notification, notification_id)
        if notif is None:
            raise ResourceNotFoundError("Notification", notification_id)

        if notif.type != NotificationType.GROUP_INVITE:
            await NotificationService.delete_notification(db, notif.id)
            await db.commit()
            return "Cleared"

        try:
            status = NotificationStatus(response)
        except ValueError:
            status = None
        if status not in INVITE_RESPONSES:
            raise ValidationError("Response must be ACCEPTED or REJECTED", {"response": response})

        # answered invites are final; repeating the same answer changes nothing
        if notif.status != NotificationStatus.PENDING:
            if notif.status == status:
                return f"Invite {status.value}"
            raise ConflictError(
                f"Invite already {notif.status.value}",
                {"notification_id": notif.id, "status": notif.status.value},
            )

        notif.status = status
        if status == NotificationStatus.ACCEPTED and notif.group_id is not None:
            await add_member(db, notif.group_id, notif.recipient_id)
        await db.commit()

        if status == NotificationStatus.ACCEPTED and notif.group_id is not None:
            user = await db.get(User, notif.recipient_id)
            group = await db.get(Group, notif.group_id)
            if user is not None and group is not None:
                dispatcher.submit(EmailService.send_group_welcome_email, user.email, user.username, group.name)

        logger.info("Invite %s %s by user %s", notif.id, status.value, notif.recipient_id)
        return f"Invite {status.value}"

    @staticmethod
    async def remove_member(db: AsyncSession, group_id: int, member_id: int) -> Group:
        """Direct set-remove. Not reversible through notifications."""
        await _require_group(db, group_id)
        await db.execute(delete(group_members).where(
            group_members.c.group_id == group_id,
            group_members.c.user_id == member_id,
        ))
        await db.commit()
        return await load_group(db, group_id)

    @staticmethod
    async def list_user_groups(db: AsyncSession, user_id: int) -> List[Group]:
        """Groups the user belongs to, newest first."""
        stmt = (
            select(Group)
            .join(group_members, group_members.c.group_id == Group.id)
            .where(group_members.c.user_id == user_id)
            .order_by(Group.created_at.desc(), Group.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
