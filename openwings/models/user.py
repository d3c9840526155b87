"""User model definitions."""

from sqlalchemy import Column, Index, Integer, String, func
from openwings.database import Base


class User(Base):
    """Represents a registered birdwatcher."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    email = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)

    __table_args__ = (
        Index("uq_users_username_lower", func.lower(username), unique=True),
    )
