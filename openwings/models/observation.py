"""Observation model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from openwings.database import Base


class Observation(Base):
    """Represents a sighting reported by a user."""
    __tablename__ = "observations"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    species_scientific_name = Column(String, ForeignKey("species.scientific_name"), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    observed_at = Column(DateTime, nullable=False)
    approved = Column(Boolean, nullable=False, default=False)
