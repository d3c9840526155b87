import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from openwings.auth.dependencies import AuthenticatedUser, require_user
from openwings.auth.sessions import utcnow
from openwings.core.errors import Forbidden, MalformedInput, NotFound, StorageUnavailable
from openwings.database import get_db
from openwings.models.challenge import Challenge, ChallengeParticipant
from openwings.models.observation import Observation
from openwings.models.species import Species
from openwings.models.user import User
from openwings.routes.user_routes import to_naive_utc

router = APIRouter(prefix='/api/user/challenges', tags=['challenges'])

logger = logging.getLogger(__name__)

CONSERVATION_STATUSES = ('lc', 'nt', 'vu', 'en', 'cr')
MAX_CHALLENGE_NAME_LENGTH = 120


class ChallengePoints(BaseModel):
    lc: float = Field(default=0, ge=0)
    nt: float = Field(default=0, ge=0)
    vu: float = Field(default=0, ge=0)
    en: float = Field(default=0, ge=0)
    cr: float = Field(default=0, ge=0)


class CreateChallengeRequest(BaseModel):
    name: str
    startDate: datetime
    endDate: datetime
    points: ChallengePoints

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Challenge name is required.')
        if len(normalized) > MAX_CHALLENGE_NAME_LENGTH:
            raise ValueError(f'Challenge name must be {MAX_CHALLENGE_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('startDate', 'endDate')
    @classmethod
    def validate_dates(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode='after')
    def validate_date_range(self) -> 'CreateChallengeRequest':
        if self.startDate >= self.endDate:
            raise ValueError('Challenge must start before it ends.')
        return self


class InviteRequest(BaseModel):
    challenge: str
    username: str

    @field_validator('challenge', 'username')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class InvitationResponseRequest(BaseModel):
    challengeName: str
    response: bool


class ParticipantScore(BaseModel):
    username: str
    score: float = 0
    lcScore: float = 0
    ntScore: float = 0
    vuScore: float = 0
    enScore: float = 0
    crScore: float = 0


class ChallengeStanding(BaseModel):
    challengeName: str
    startDate: datetime
    endDate: datetime
    ended: bool
    lcPoints: float
    ntPoints: float
    vuPoints: float
    enPoints: float
    crPoints: float
    participants: list[ParticipantScore]


class InvitationSummary(BaseModel):
    challengeName: str
    startDate: datetime
    endDate: datetime


def _storage_error(operation: str) -> StorageUnavailable:
    logger.exception('Storage error during %s', operation)
    return StorageUnavailable(operation)


def create_challenge_with_creator(db: Session, data: CreateChallengeRequest, user_id: int) -> Challenge:
    """Insert the challenge and enrol its creator in a single transaction."""
    challenge = Challenge(
        name=data.name,
        start_date=data.startDate,
        end_date=data.endDate,
        lc_points=data.points.lc,
        nt_points=data.points.nt,
        vu_points=data.points.vu,
        en_points=data.points.en,
        cr_points=data.points.cr,
    )
    try:
        db.add(challenge)
        db.flush()
        db.add(ChallengeParticipant(challenge_name=challenge.name, user_id=user_id, accepted=True))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise MalformedInput('Challenge could not be created') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error('create_challenge') from exc

    return challenge


def get_participation(db: Session, challenge_name: str, user_id: int) -> ChallengeParticipant | None:
    return db.query(ChallengeParticipant).filter(
        ChallengeParticipant.challenge_name == challenge_name,
        ChallengeParticipant.user_id == user_id,
    ).first()


def invite_user(db: Session, challenge_name: str, inviter_id: int, invitee_username: str) -> None:
    inviter = get_participation(db, challenge_name, inviter_id)
    if inviter is None or not inviter.accepted:
        raise Forbidden('Only challenge participants can invite users')

    invitee = db.query(User).filter(func.lower(User.username) == invitee_username.lower()).first()
    if invitee is None:
        raise NotFound('User not found')

    if get_participation(db, challenge_name, invitee.id) is not None:
        raise MalformedInput('User is already invited')

    try:
        db.add(ChallengeParticipant(challenge_name=challenge_name, user_id=invitee.id, accepted=False))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise MalformedInput('User is already invited') from exc


def list_pending_invitations(db: Session, user_id: int) -> list[InvitationSummary]:
    challenges = (
        db.query(Challenge)
        .join(ChallengeParticipant, ChallengeParticipant.challenge_name == Challenge.name)
        .filter(ChallengeParticipant.user_id == user_id, ChallengeParticipant.accepted.is_(False))
        .order_by(Challenge.start_date.asc())
        .all()
    )
    return [
        InvitationSummary(challengeName=item.name, startDate=item.start_date, endDate=item.end_date)
        for item in challenges
    ]


def respond_to_invitation(db: Session, challenge_name: str, user_id: int, accept: bool) -> None:
    participation = get_participation(db, challenge_name, user_id)
    if participation is None or participation.accepted:
        raise NotFound('Invitation not found')

    if accept:
        participation.accepted = True
    else:
        db.delete(participation)
    db.commit()


def get_participant_scores(db: Session, challenge: Challenge) -> list[ParticipantScore]:
    """Score each accepted participant.

    Every distinct species a participant saw in the challenge window, with an
    approved observation, is worth the challenge's points for its
    conservation status.
    """
    participants = (
        db.query(User.id, User.username)
        .join(ChallengeParticipant, ChallengeParticipant.user_id == User.id)
        .filter(
            ChallengeParticipant.challenge_name == challenge.name,
            ChallengeParticipant.accepted.is_(True),
        )
        .all()
    )
    if not participants:
        return []

    observed = (
        db.query(Observation.user_id, Species.scientific_name, Species.conservation_status)
        .join(Species, Observation.species_scientific_name == Species.scientific_name)
        .filter(
            Observation.user_id.in_([user_id for user_id, _ in participants]),
            Observation.approved.is_(True),
            Observation.observed_at >= challenge.start_date,
            Observation.observed_at <= challenge.end_date,
        )
        .distinct()
        .all()
    )

    points = {code: getattr(challenge, f'{code}_points') or 0 for code in CONSERVATION_STATUSES}
    scores = {user_id: ParticipantScore(username=username) for user_id, username in participants}
    for user_id, _scientific_name, conservation_status in observed:
        code = (conservation_status or '').strip().lower()
        if code not in points:
            continue
        score = scores[user_id]
        field_name = f'{code}Score'
        setattr(score, field_name, getattr(score, field_name) + points[code])
        score.score += points[code]

    return sorted(scores.values(), key=lambda item: (-item.score, item.username.lower()))


def get_user_challenges_with_participants(db: Session, user_id: int) -> list[ChallengeStanding]:
    challenges = (
        db.query(Challenge)
        .join(ChallengeParticipant, ChallengeParticipant.challenge_name == Challenge.name)
        .filter(ChallengeParticipant.user_id == user_id, ChallengeParticipant.accepted.is_(True))
        .order_by(Challenge.end_date.desc())
        .all()
    )
    now = utcnow()
    return [
        ChallengeStanding(
            challengeName=challenge.name,
            startDate=challenge.start_date,
            endDate=challenge.end_date,
            ended=now > challenge.end_date,
            lcPoints=challenge.lc_points,
            ntPoints=challenge.nt_points,
            vuPoints=challenge.vu_points,
            enPoints=challenge.en_points,
            crPoints=challenge.cr_points,
            participants=get_participant_scores(db, challenge),
        )
        for challenge in challenges
    ]


@router.api_route('', methods=['GET', 'POST'], response_model=list[ChallengeStanding])
def list_challenges(current_user: AuthenticatedUser = Depends(require_user), db: Session = Depends(get_db)):
    try:
        return get_user_challenges_with_participants(db, current_user.user_id)
    except SQLAlchemyError as exc:
        raise _storage_error('list_challenges') from exc


@router.post('/new', status_code=status.HTTP_201_CREATED)
def create_challenge(
    data: CreateChallengeRequest,
    current_user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    challenge = create_challenge_with_creator(db, data, current_user.user_id)
    logger.info('Challenge %s created', challenge.name)
    return {'message': 'Challenge created', 'challengeName': data.name}


@router.post('/invite', status_code=status.HTTP_201_CREATED)
def invite(
    data: InviteRequest,
    current_user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    try:
        invite_user(db, data.challenge, current_user.user_id, data.username)
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error('invite') from exc
    return {'message': 'Invitation sent'}


@router.post('/invitations', response_model=list[InvitationSummary])
def invitations(current_user: AuthenticatedUser = Depends(require_user), db: Session = Depends(get_db)):
    try:
        return list_pending_invitations(db, current_user.user_id)
    except SQLAlchemyError as exc:
        raise _storage_error('invitations') from exc


@router.post('/invite/respond')
def respond(
    data: InvitationResponseRequest,
    current_user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    try:
        respond_to_invitation(db, data.challengeName, current_user.user_id, data.response)
    except SQLAlchemyError as exc:
        db.rollback()
        raise _storage_error('respond') from exc
    return {'message': 'Invitation accepted' if data.response else 'Invitation declined'}
