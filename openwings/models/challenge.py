"""Challenge model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from openwings.database import Base


class Challenge(Base):
    """Represents a timed observation competition."""
    __tablename__ = "challenge"

    name = Column(String, primary_key=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    lc_points = Column(Float, nullable=False, default=0)
    nt_points = Column(Float, nullable=False, default=0)
    vu_points = Column(Float, nullable=False, default=0)
    en_points = Column(Float, nullable=False, default=0)
    cr_points = Column(Float, nullable=False, default=0)


class ChallengeParticipant(Base):
    """Links a user to a challenge; invitees stay pending until they accept."""
    __tablename__ = "challenge_participants"

    challenge_name = Column(String, ForeignKey("challenge.name", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    accepted = Column(Boolean, nullable=False, default=False)
