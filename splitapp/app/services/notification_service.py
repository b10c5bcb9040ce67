"""
Notification Service.

Creates in-app notifications and queues the matching emails for expense
and settlement events. Alerting is best effort: callers commit the financial
record first and treat any failure here as a warning.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.domain.ledger.ledger_service import lookup_usernames, lookup_group_names
from splitapp.app.models.enums import NotificationType, NotificationStatus
from splitapp.app.models.expense import Expense
from splitapp.app.models.group import Group
from splitapp.app.models.notification import Notification
from splitapp.app.models.user import User
from splitapp.app.services.dispatcher import Dispatcher
from splitapp.app.services.email_service import EmailService, TransactionEmail

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        recipient_id: int,
        sender_id: int,
        message: str,
        type: NotificationType = NotificationType.INFO,
        group_id: Optional[int] = None,
        status: Optional[NotificationStatus] = None,
    ) -> Notification:
        """Create a single notification. The caller commits."""
        if status is None:
            status = NotificationStatus.PENDING if type == NotificationType.GROUP_INVITE else NotificationStatus.UNREAD
        notif = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            group_id=group_id,
            message=message,
            status=status,
        )
        db.add(notif)
        await db.flush()
        return notif

    @staticmethod
    async def create_invites(
        db: AsyncSession,
        group: Group,
        inviter: User,
        invitee_ids: Iterable[int],
    ) -> List[Notification]:
        """One PENDING GROUP_INVITE per invitee. The caller commits."""
        invites = [
            Notification(
                recipient_id=invitee_id,
                sender_id=inviter.id,
                type=NotificationType.GROUP_INVITE,
                group_id=group.id,
                message=f'{inviter.username} invited you to join "{group.name}"',
                status=NotificationStatus.PENDING,
            )
            for invitee_id in invitee_ids
        ]
        if invites:
            db.add_all(invites)
            await db.flush()
        return invites

    @staticmethod
    async def list_for_recipient(db: AsyncSession, user_id: int) -> List[dict]:
        """Pending invites plus every non-invite notification, newest first."""
        stmt = (
            select(Notification)
            .where(
                Notification.recipient_id == user_id,
                or_(
                    Notification.status == NotificationStatus.PENDING,
                    Notification.type != NotificationType.GROUP_INVITE,
                ),
            )
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        result = await db.execute(stmt)
        notifications = result.scalars().all()

        usernames = await lookup_usernames(db, (n.sender_id for n in notifications))
        group_names = await lookup_group_names(db, (n.group_id for n in notifications if n.group_id is not None))

        return [
            {
                "id": n.id,
                "type": n.type,
                "status": n.status,
                "message": n.message,
                "sender": {"id": n.sender_id, "username": usernames[n.sender_id]} if n.sender_id in usernames else None,
                "group": {"id": n.group_id, "name": group_names[n.group_id]} if n.group_id in group_names else None,
                "created_at": n.created_at,
            }
            for n in notifications
        ]

    @staticmethod
    async def delete_notification(db: AsyncSession, notification_id: int) -> bool:
        result = await db.execute(delete(Notification).where(Notification.id == notification_id))
        return result.rowcount > 0

    @staticmethod
    async def notify_expense_added(db: AsyncSession, dispatcher: Dispatcher, expense: Expense) -> int:
        """
        Alert the payer and every debtor of a new expense.

        The payer gets a PAID email. Each debtor other than the payer gets an
        OWE email and an EXPENSE_ADDED notification. Returns the number of
        notifications written; the caller commits.
        """
        group = await db.get(Group, expense.group_id)
        payer = await db.get(User, expense.payer_id)
        if group is None or payer is None:
            logger.warning("Skipping alerts for expense %s: payer or group missing", expense.id)
            return 0

        dispatcher.submit(
            EmailService.send_transaction_email,
            payer.email, payer.username, TransactionEmail.PAID,
            {"group_name": group.name, "description": expense.description, "total_amount": expense.amount},
        )

        debtor_splits = [s for s in expense.splits if s.user_id is not None and s.user_id != payer.id]
        debtor_ids = {s.user_id for s in debtor_splits}
        result = await db.execute(select(User).where(User.id.in_(debtor_ids)))
        debtors = {user.id: user for user in result.scalars().all()}

        notifications = []
        for split in debtor_splits:
            debtor = debtors.get(split.user_id)
            if debtor is None:
                continue
            dispatcher.submit(
                EmailService.send_transaction_email,
                debtor.email, debtor.username, TransactionEmail.OWE,
                {
                    "group_name": group.name,
                    "payer_name": payer.username,
                    "description": expense.description,
                    "amount": f"{split.amount:.2f}",
                },
            )
            notifications.append(Notification(
                recipient_id=split.user_id,
                sender_id=payer.id,
                type=NotificationType.EXPENSE_ADDED,
                group_id=group.id,
                message=f'{payer.username} added "{expense.description}" in {group.name}',
                status=NotificationStatus.UNREAD,
            ))

        if notifications:
            db.add_all(notifications)
            await db.flush()
        return len(notifications)

    @staticmethod
    async def notify_settlement(db: AsyncSession, dispatcher: Dispatcher, settlement: Expense) -> int:
        """Email both parties and leave a SETTLEMENT notification for the receiver."""
        receiver_id = settlement.splits[0].user_id if settlement.splits else None
        payer = await db.get(User, settlement.payer_id)
        receiver = await db.get(User, receiver_id) if receiver_id is not None else None
        group = await db.get(Group, settlement.group_id)
        if payer is None or receiver is None or group is None:
            logger.warning("Skipping alerts for settlement %s: party or group missing", settlement.id)
            return 0

        dispatcher.submit(
            EmailService.send_transaction_email,
            receiver.email, receiver.username, TransactionEmail.SETTLEMENT_RECEIVED,
            {"payer_name": payer.username, "amount": settlement.amount},
        )
        dispatcher.submit(
            EmailService.send_transaction_email,
            payer.email, payer.username, TransactionEmail.SETTLEMENT_SENT,
            {"receiver_name": receiver.username, "amount": settlement.amount},
        )

        await NotificationService.create_notification(
            db,
            recipient_id=receiver.id,
            sender_id=payer.id,
            type=NotificationType.SETTLEMENT,
            group_id=group.id,
            message=f"{payer.username} settled ₹{settlement.amount} with you in {group.name}",
        )
        return 1
