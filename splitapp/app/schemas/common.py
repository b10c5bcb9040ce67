"""
Reference schemas shared by several responses.
"""

from pydantic import BaseModel


class UserRef(BaseModel):
    id: int
    username: str


class GroupRef(BaseModel):
    id: int
    name: str
