"""Species reference data models."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from openwings.database import Base


class Species(Base):
    """Represents a bird species."""
    __tablename__ = "species"

    scientific_name = Column(String, primary_key=True)
    common_name = Column(String, index=True)
    family = Column(String)
    order_name = Column(String)
    diet = Column(String)
    conservation_status = Column(String)  # IUCN code: LC/NT/VU/EN/CR


class SpeciesRange(Base):
    """Represents the seasonal range of a species as a GeoJSON geometry."""
    __tablename__ = "species_range"

    id = Column(Integer, primary_key=True)
    species_scientific_name = Column(String, ForeignKey("species.scientific_name"), nullable=False, index=True)
    season = Column(String, nullable=False)
    geometry = Column(Text, nullable=False)


class Media(Base):
    """Represents an image or recording of a species."""
    __tablename__ = "media"

    id = Column(Integer, primary_key=True)
    species_scientific_name = Column(String, ForeignKey("species.scientific_name"), nullable=False, index=True)
    media_type = Column(String, nullable=False)
    url = Column(String, nullable=False)
    license = Column(String)
    contributor = Column(String)
