from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from openwings.auth import sessions
from openwings.auth.cookies import get_session_id
from openwings.core.errors import LoginRequired
from openwings.database import get_db


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: int
    session_id: str


def require_user(request: Request, db: Session = Depends(get_db)) -> AuthenticatedUser:
    settings = request.app.state.settings
    session_id = get_session_id(request.headers.get('cookie'), settings.session_cookie_name)

    user_id = sessions.verify_session(db, session_id)
    if user_id is None:
        raise LoginRequired()

    current_user = AuthenticatedUser(user_id=user_id, session_id=session_id)
    request.state.user = current_user
    return current_user
