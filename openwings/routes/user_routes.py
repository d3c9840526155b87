import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from openwings.auth.dependencies import AuthenticatedUser, require_user
from openwings.core.errors import MalformedInput, NotFound, StorageUnavailable
from openwings.database import get_db
from openwings.models.observation import Observation
from openwings.models.species import Species
from openwings.models.user import User

router = APIRouter(prefix='/api/user', tags=['user'])

logger = logging.getLogger(__name__)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class UserInfoResponse(BaseModel):
    username: str
    email: str


class CreateObservationRequest(BaseModel):
    species: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    observedAt: datetime

    @field_validator('species')
    @classmethod
    def validate_species(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Species is required.')
        return normalized

    @field_validator('observedAt')
    @classmethod
    def validate_observed_at(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


def get_user_observation_features(db: Session, user_id: int) -> list[dict]:
    observations = (
        db.query(Observation)
        .filter(Observation.user_id == user_id)
        .order_by(Observation.observed_at.asc())
        .all()
    )
    return [
        {
            'type': 'Feature',
            'properties': {
                'speciesName': observation.species_scientific_name,
                'observedAt': observation.observed_at.isoformat(),
                'approved': bool(observation.approved),
            },
            'geometry': {
                'type': 'Point',
                'coordinates': [observation.longitude, observation.latitude],
            },
        }
        for observation in observations
    ]


def resolve_species_name(db: Session, species: str) -> str | None:
    match = (
        db.query(Species.scientific_name)
        .filter((Species.scientific_name == species) | (Species.common_name == species))
        .first()
    )
    return match[0] if match else None


@router.api_route('', methods=['GET', 'POST'], response_model=UserInfoResponse)
def user_info(current_user: AuthenticatedUser = Depends(require_user), db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.id == current_user.user_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Storage error during user_info')
        raise StorageUnavailable('user_info') from exc

    if user is None:
        raise NotFound('User not found')
    return UserInfoResponse(username=user.username, email=user.email)


@router.api_route('/observations', methods=['GET', 'POST'])
def list_observations(current_user: AuthenticatedUser = Depends(require_user), db: Session = Depends(get_db)):
    try:
        return get_user_observation_features(db, current_user.user_id)
    except SQLAlchemyError as exc:
        logger.exception('Storage error during list_observations')
        raise StorageUnavailable('list_observations') from exc


@router.post('/observations/new', status_code=status.HTTP_201_CREATED)
def create_observation(
    data: CreateObservationRequest,
    current_user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    try:
        scientific_name = resolve_species_name(db, data.species)
        if scientific_name is None:
            raise MalformedInput('Unknown species')

        observation = Observation(
            user_id=current_user.user_id,
            species_scientific_name=scientific_name,
            latitude=data.latitude,
            longitude=data.longitude,
            observed_at=data.observedAt,
            approved=False,
        )
        db.add(observation)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage error during create_observation')
        raise StorageUnavailable('create_observation') from exc

    return {'message': 'Observation recorded'}
