"""
Notification Database Model.
"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from splitapp.app.db.session import Base
from splitapp.app.models.enums import NotificationType, NotificationStatus


class Notification(Base):
    """
    In-app notification.
    
    GROUP_INVITE rows drive group membership and persist after a response.
    All other types are deleted when the recipient acknowledges them.
    """
    __tablename__ = "notifications"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    recipient_id = Column(Integer, nullable=False, index=True)
    sender_id = Column(Integer, nullable=False)
    
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(Enum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False, index=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Notification(id={self.id}, recipient={self.recipient_id}, type='{self.type.value}', status='{self.status.value}')>"
