"""
Group database model and membership association table.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from splitapp.app.db.session import Base


# One row per (group, user). The composite key gives set semantics to membership.
group_members = Table(
    "group_members",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("joined_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class Group(Base):
    """
    Expense-sharing group.
    
    Starts with only the creator as member. Other users join through a
    GROUP_INVITE notification.
    """
    __tablename__ = "groups"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    members = relationship("User", secondary=group_members, lazy="selectin", order_by="User.id")
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Group(id={self.id}, name='{self.name}', creator={self.creator_id})>"
