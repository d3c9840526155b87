"""Login session model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from openwings.database import Base


class UserSession(Base):
    """Represents an opaque session token issued at login."""
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)  # naive UTC
