"""
User model - account owning one or more viewing profiles
"""
from sqlalchemy import Column, String, TIMESTAMP, func
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.base import generate_id


class User(Base):
    """
    Users table - authenticated account

    `active_profile_id` is the profile the session is currently acting as.
    Ownership is checked by the services, so no FK is declared (it would
    form a cycle with profiles.user_id).
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100))
    active_profile_id = Column(String(36), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    profiles = relationship(
        "Profile",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
