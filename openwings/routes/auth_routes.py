import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from openwings.auth import accounts, sessions
from openwings.auth.cookies import get_session_id
from openwings.core.config import Settings
from openwings.core.errors import DuplicateUser, InvalidCredentials
from openwings.database import get_db

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


def _required(value: str, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{field_name} is required.')
    return normalized


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _required(value, 'Username')

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value


class RegisterRequest(LoginRequest):
    email: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = _required(value, 'Email')
        if '@' not in normalized:
            raise ValueError('Email address is invalid.')
        return normalized


def set_session_cookie(response, settings: Settings, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_max_age_seconds,
        path='/',
        httponly=True,
        samesite='strict',
        secure=settings.session_cookie_secure,
    )


@router.post('/api/login')
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    settings: Settings = request.app.state.settings
    session_id = accounts.authenticate(
        db,
        data.username,
        data.password,
        ttl=timedelta(minutes=settings.session_ttl_minutes),
    )
    if session_id is None:
        raise InvalidCredentials()

    response = JSONResponse({'message': 'Login successful'})
    set_session_cookie(response, settings, session_id)
    return response


@router.post('/api/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if not accounts.register(db, data.username, data.password, data.email):
        raise DuplicateUser()
    return {'message': 'Registration successful'}


@router.post('/api/logout')
def logout(request: Request, db: Session = Depends(get_db)):
    settings: Settings = request.app.state.settings
    session_id = get_session_id(request.headers.get('cookie'), settings.session_cookie_name)
    if sessions.delete_session(db, session_id):
        logger.info('Session closed')

    response = RedirectResponse(url=settings.login_path, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(settings.session_cookie_name, path='/', httponly=True, samesite='strict')
    return response
