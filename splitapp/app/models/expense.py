"""
Expense and split database models.

Expenses form an append-only log: there is no update or delete path.
User references (payer, debtor) are plain ids resolved at read time, so a
missing user shows up as an orphaned reference instead of a constraint error.
"""

from sqlalchemy import Column, Integer, String, Float, Numeric, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from splitapp.app.db.session import Base
from splitapp.app.models.enums import SplitType

SETTLEMENT_DESCRIPTION = "Settlement"


class Expense(Base):
    """
    A shared expense, or a settlement when ``is_settled`` is True.
    
    A settlement has description "Settlement", split type EXACT and a single
    split naming the receiver.
    """
    __tablename__ = "expenses"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    
    payer_id = Column(Integer, index=True, nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    
    split_type = Column(Enum(SplitType), nullable=False)
    is_settled = Column(Boolean, default=False, nullable=False)
    
    splits = relationship(
        "ExpenseSplit",
        order_by="ExpenseSplit.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    
    # Immutable - no updated_at
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<Expense(id={self.id}, group={self.group_id}, payer={self.payer_id}, amount={self.amount})>"


class ExpenseSplit(Base):
    """One debtor's share of an expense."""
    __tablename__ = "expense_splits"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    
    user_id = Column(Integer, index=True, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    percent = Column(Float, nullable=True)  # informational
    
    def __repr__(self):
        return f"<ExpenseSplit(expense={self.expense_id}, user={self.user_id}, amount={self.amount})>"
