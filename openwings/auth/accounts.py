import logging
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from openwings.auth import passwords, sessions
from openwings.core.errors import InvalidCredentialFormat, StorageUnavailable
from openwings.models.user import User

DEFAULT_SESSION_TTL = timedelta(minutes=45)

logger = logging.getLogger(__name__)

_dummy_password_hash: str | None = None


def _get_dummy_password_hash() -> str:
    # Verified against when the username is unknown so both failure paths do the same work.
    global _dummy_password_hash
    if _dummy_password_hash is None:
        _dummy_password_hash = passwords.hash_password('openwings-dummy-password')
    return _dummy_password_hash


def find_user_by_username(db: Session, username: str) -> User | None:
    normalized = (username or '').strip().lower()
    if not normalized:
        return None
    try:
        return db.query(User).filter(func.lower(User.username) == normalized).first()
    except SQLAlchemyError as exc:
        logger.exception('Storage error during find_user_by_username')
        raise StorageUnavailable('find_user_by_username') from exc


def authenticate(
    db: Session,
    username: str,
    password: str,
    ttl: timedelta = DEFAULT_SESSION_TTL,
) -> str | None:
    user = find_user_by_username(db, username)
    if user is None:
        passwords.verify_password(_get_dummy_password_hash(), password or '')
        logger.info('Login rejected')
        return None

    try:
        is_valid = passwords.verify_password(user.password_hash, password or '')
    except InvalidCredentialFormat:
        logger.error('Stored password for user id %s is malformed', user.id)
        return None

    if not is_valid:
        logger.info('Login rejected')
        return None

    session_id = sessions.create_session(db, user.id, ttl)
    logger.info('User %s logged in', user.username)
    return session_id


def register(db: Session, username: str, password: str, email: str) -> bool:
    normalized = (username or '').strip()
    if not normalized or not password or not (email or '').strip():
        return False

    if find_user_by_username(db, normalized) is not None:
        logger.info('Registration rejected')
        return False

    user = User(
        username=normalized,
        email=email.strip(),
        password_hash=passwords.hash_password(password),
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info('Registration rejected')
        return False
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage error during register')
        raise StorageUnavailable('register') from exc

    logger.info('Registered user %s', normalized)
    return True
