"""
Notification Schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from splitapp.app.models.enums import NotificationType, NotificationStatus
from splitapp.app.schemas.common import UserRef, GroupRef


class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    status: NotificationStatus
    message: str
    sender: Optional[UserRef] = None
    group: Optional[GroupRef] = None
    created_at: datetime


class RespondRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    notification_id: int = Field(..., alias="notificationId")
    response: Optional[str] = None  # ACCEPTED | REJECTED; ignored for non-invites


class NotificationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    user_id: int = Field(..., alias="userId")
    sender_id: int = Field(..., alias="senderId")
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
