"""
Group and membership schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from splitapp.app.schemas.common import UserRef


class MemberResponse(BaseModel):
    id: int
    username: str
    email: str
    
    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: int
    name: str
    creator_id: int
    members: List[MemberResponse]
    created_at: datetime
    
    class Config:
        from_attributes = True


class GroupCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    name: str = Field(..., min_length=1, max_length=255)
    creator_id: int = Field(..., alias="creatorId")
    member_ids: List[int] = Field(default_factory=list, alias="memberIds")


class GroupCreateResponse(BaseModel):
    group: GroupResponse
    message: str


class AddMemberRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    group_id: int = Field(..., alias="groupId")
    member_id: int = Field(..., alias="memberId")
    admin_id: int = Field(..., alias="adminId")


class RemoveMemberRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    group_id: int = Field(..., alias="groupId")
    member_id: int = Field(..., alias="memberId")


class UserSearchResult(UserRef):
    email: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
