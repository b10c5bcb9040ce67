"""
Shared enumerations for expenses and notifications.
"""

import enum


class SplitType(str, enum.Enum):
    """
    How an expense was divided.
    
    Stored for display only; the ledger always uses the per-split amounts
    supplied by the client.
    """
    EQUAL = "EQUAL"
    EXACT = "EXACT"
    PERCENTAGE = "PERCENTAGE"


class NotificationType(str, enum.Enum):
    GROUP_INVITE = "GROUP_INVITE"
    EXPENSE_ADDED = "EXPENSE_ADDED"
    SETTLEMENT = "SETTLEMENT"
    INFO = "INFO"


class NotificationStatus(str, enum.Enum):
    """Invites move PENDING -> ACCEPTED | REJECTED; everything else stays UNREAD until deleted."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    UNREAD = "UNREAD"
