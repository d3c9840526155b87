import json
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from openwings.core.errors import NotFound, StorageUnavailable
from openwings.database import get_db
from openwings.models.species import Media, Species, SpeciesRange

router = APIRouter(prefix='/api/species', tags=['species'])

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25
MAX_BATCH_SIZE = 100


class SpeciesNameRequest(BaseModel):
    speciesName: str

    @field_validator('speciesName')
    @classmethod
    def validate_species_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Species name is required.')
        return normalized


class SpeciesRangeRequest(SpeciesNameRequest):
    season: str

    @field_validator('season')
    @classmethod
    def validate_season(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Season is required.')
        return normalized


class SpeciesResponse(BaseModel):
    scientific_name: str
    common_name: str | None = None
    family: str | None = None
    order_name: str | None = None
    diet: str | None = None
    conservation_status: str | None = None

    class Config:
        from_attributes = True


class SpeciesBatchItem(BaseModel):
    scientificName: str
    commonName: str | None = None
    family: str | None = None
    orderName: str | None = None
    diet: str | None = None
    conservationStatus: str | None = None


class SpeciesImageResponse(BaseModel):
    url: str
    license: str | None = None
    contributor: str | None = None


def _storage_error(operation: str) -> StorageUnavailable:
    logger.exception('Storage error during %s', operation)
    return StorageUnavailable(operation)


def name_matches(term: str):
    pattern = f'%{term.lower()}%'
    return or_(
        func.lower(Species.scientific_name).like(pattern),
        func.lower(Species.common_name).like(pattern),
    )


def query_range_features(db: Session, species_name: str, season: str) -> list[dict]:
    rows = (
        db.query(SpeciesRange.geometry, SpeciesRange.species_scientific_name, SpeciesRange.season)
        .join(Species, SpeciesRange.species_scientific_name == Species.scientific_name)
        .filter(name_matches(species_name), func.lower(SpeciesRange.season) == season.lower())
        .all()
    )
    return [
        {
            'type': 'Feature',
            'properties': {
                'species_scientific_name': scientific_name,
                'season': row_season,
            },
            'geometry': json.loads(geometry),
        }
        for geometry, scientific_name, row_season in rows
    ]


def query_species(db: Session, species_name: str) -> Species | None:
    return (
        db.query(Species)
        .filter(name_matches(species_name))
        .order_by(Species.scientific_name.asc())
        .first()
    )


def query_species_images(db: Session, species_name: str) -> list[SpeciesImageResponse]:
    media = (
        db.query(Media)
        .join(Species, Media.species_scientific_name == Species.scientific_name)
        .filter(
            or_(Species.scientific_name == species_name, Species.common_name == species_name),
            Media.media_type == 'image',
        )
        .order_by(Media.id.asc())
        .all()
    )
    return [
        SpeciesImageResponse(url=item.url, license=item.license, contributor=item.contributor)
        for item in media
    ]


def query_species_batch(db: Session, limit: int, after: str = '') -> list[SpeciesBatchItem]:
    query = db.query(Species)
    if after:
        query = query.filter(func.lower(Species.scientific_name) > after.lower())

    species = query.order_by(func.lower(Species.scientific_name).asc()).limit(limit).all()
    return [
        SpeciesBatchItem(
            scientificName=item.scientific_name,
            commonName=item.common_name,
            family=item.family,
            orderName=item.order_name,
            diet=item.diet,
            conservationStatus=item.conservation_status,
        )
        for item in species
    ]


@router.get('', response_model=list[SpeciesResponse])
def list_species(db: Session = Depends(get_db)):
    try:
        return db.query(Species).order_by(Species.scientific_name.asc()).all()
    except SQLAlchemyError as exc:
        raise _storage_error('list_species') from exc


@router.get('/batch', response_model=list[SpeciesBatchItem])
def list_species_batch(
    limit: int = Query(default=DEFAULT_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE),
    after: str = Query(default=''),
    db: Session = Depends(get_db),
):
    try:
        return query_species_batch(db, limit, after.strip())
    except SQLAlchemyError as exc:
        raise _storage_error('list_species_batch') from exc


@router.post('/geojson')
def species_geojson(data: SpeciesRangeRequest, db: Session = Depends(get_db)):
    try:
        features = query_range_features(db, data.speciesName, data.season)
    except SQLAlchemyError as exc:
        raise _storage_error('species_geojson') from exc

    if not features:
        raise NotFound('Species not found')
    return features


@router.post('/info', response_model=SpeciesResponse)
def species_info(data: SpeciesNameRequest, db: Session = Depends(get_db)):
    try:
        species = query_species(db, data.speciesName)
    except SQLAlchemyError as exc:
        raise _storage_error('species_info') from exc

    if species is None:
        raise NotFound('Species not found')
    return species


@router.post('/images', response_model=list[SpeciesImageResponse])
def species_images(data: SpeciesNameRequest, db: Session = Depends(get_db)):
    try:
        return query_species_images(db, data.speciesName)
    except SQLAlchemyError as exc:
        raise _storage_error('species_images') from exc
