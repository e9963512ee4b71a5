"""
Profile model - a viewer within a user account
"""
from sqlalchemy import Column, String, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.base import generate_id


class Profile(Base):
    """
    Profiles table - playback state is always scoped to a profile
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    avatar = Column(String(255))
    is_kids = Column(Boolean, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="profiles")

    def __repr__(self):
        return f"<Profile(id={self.id}, name={self.name}, user_id={self.user_id})>"
