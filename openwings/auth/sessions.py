import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from openwings.core.errors import StorageUnavailable
from openwings.models.session import UserSession

TOKEN_BYTES = 32

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    # Session timestamps are stored as naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_session(db: Session, user_id: int, ttl: timedelta) -> str:
    session_id = secrets.token_hex(TOKEN_BYTES)
    expires_at = utcnow() + ttl

    try:
        db.add(UserSession(id=session_id, user_id=user_id, expires_at=expires_at))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage error during create_session')
        raise StorageUnavailable('create_session') from exc

    return session_id


def verify_session(db: Session, session_id: str | None) -> int | None:
    if not session_id:
        return None

    try:
        session = db.query(UserSession).filter(
            UserSession.id == session_id,
            UserSession.expires_at > utcnow(),
        ).first()
    except SQLAlchemyError as exc:
        logger.exception('Storage error during verify_session')
        raise StorageUnavailable('verify_session') from exc

    if session is None:
        return None
    return session.user_id


def delete_session(db: Session, session_id: str | None) -> bool:
    if not session_id:
        return False

    try:
        deleted = db.query(UserSession).filter(UserSession.id == session_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage error during delete_session')
        raise StorageUnavailable('delete_session') from exc

    return deleted > 0


def purge_expired_sessions(db: Session) -> int:
    try:
        purged = db.query(UserSession).filter(
            UserSession.expires_at <= utcnow(),
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage error during purge_expired_sessions')
        raise StorageUnavailable('purge_expired_sessions') from exc

    return purged
