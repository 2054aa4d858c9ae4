"""UserRole model - application role assigned to a user."""
import enum
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class AppRole(enum.Enum):
    """Application roles."""
    ADMIN = 'admin'
    USER = 'user'


class UserRole(Base):
    """Role lookup keyed by user id (one row per user)."""

    __tablename__ = 'user_roles'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, unique=True)
    role = Column(String(20), nullable=False, default=AppRole.USER.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship('AppUser', back_populates='role_assignment')

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role='{self.role}')>"
