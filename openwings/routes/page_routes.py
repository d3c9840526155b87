from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from openwings.auth.dependencies import AuthenticatedUser, require_user
from openwings.core.errors import NotFound

router = APIRouter(tags=['pages'])

PAGES = {
    'home': 'index.html',
    'login': 'login.html',
    'register': 'register.html',
    'profile': 'profile.html',
}


def serve_page(request: Request, page: str) -> FileResponse:
    static_dir: Path = request.app.state.settings.static_dir
    file_path = static_dir / PAGES[page]
    if not file_path.is_file():
        raise NotFound()
    return FileResponse(file_path)


@router.get('/')
def home(request: Request):
    return serve_page(request, 'home')


@router.get('/login')
def login_page(request: Request):
    return serve_page(request, 'login')


@router.get('/register')
def register_page(request: Request):
    return serve_page(request, 'register')


@router.get('/profile')
def profile_page(request: Request, current_user: AuthenticatedUser = Depends(require_user)):
    del current_user
    return serve_page(request, 'profile')
