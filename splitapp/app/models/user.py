"""
User database model.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from splitapp.app.db.session import Base


class User(Base):
    """
    Registered user.
    
    Created unverified on the first registration attempt. ``otp_code`` and
    ``otp_expires_at`` only hold a value while verification is pending.
    """
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(32), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    
    # Email verification
    is_verified = Column(Boolean, default=False, nullable=False)
    otp_code = Column(String(12), nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)  # naive UTC
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}', verified={self.is_verified})>"
