import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from openwings.auth import sessions
from openwings.core.config import Settings, validate_runtime_config
from openwings.core.errors import LoginRequired, OpenWingsError, StorageUnavailable
from openwings.database import Database
from openwings.routes import auth_routes, challenge_routes, page_routes, species_routes, user_routes

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url=request.app.state.settings.login_path, status_code=302)

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
        logger.error('Request %s %s failed during %s', request.method, request.url.path, exc.operation)
        return JSONResponse(status_code=exc.status_code, content={'error': exc.message})

    @app.exception_handler(OpenWingsError)
    async def openwings_error_handler(request: Request, exc: OpenWingsError):
        return JSONResponse(status_code=exc.status_code, content={'error': exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={'error': 'Invalid request'})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    validate_runtime_config(settings)
    database = database or Database(settings.database_url)

    app = FastAPI(title='OpenWings')
    app.state.settings = settings
    app.state.database = database

    @app.on_event('startup')
    def initialize_database() -> None:
        database.open()
        try:
            database.create_schema()
            with database.scoped_session() as db:
                purged = sessions.purge_expired_sessions(db)
            if purged:
                logger.info('Purged %s expired sessions', purged)
        except (SQLAlchemyError, StorageUnavailable):
            logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')

    @app.on_event('shutdown')
    def close_database() -> None:
        database.close()

    register_exception_handlers(app)

    app.include_router(page_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(species_routes.router)
    app.include_router(user_routes.router)
    app.include_router(challenge_routes.router)
    app.mount('/static', StaticFiles(directory=str(settings.static_dir)), name='static')

    return app
