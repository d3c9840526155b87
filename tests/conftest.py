import pytest
from fastapi.testclient import TestClient

from openwings.core.config import Settings
from openwings.database import Database
from openwings.main import create_app

PASSWORD = 'S3cret!'


def register_and_login(client: TestClient, username: str, password: str = PASSWORD) -> str:
    response = client.post(
        '/api/register',
        json={'username': username, 'password': password, 'email': f'{username}@example.com'},
    )
    assert response.status_code == 201
    response = client.post('/api/login', json={'username': username, 'password': password})
    assert response.status_code == 200
    return response.cookies['sid']


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url='sqlite://')


@pytest.fixture
def database(settings: Settings):
    database = Database(settings.database_url)
    database.open()
    database.create_schema()
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def db(database: Database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings: Settings, database: Database):
    return create_app(settings, database)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def login_as(app, client: TestClient):
    """Register ``username`` and log in; returns ``(client, session_id)``.

    The first call logs in on the shared ``client``; ``new_client=True`` gives
    the user a cookie jar of their own.
    """
    def _login(username: str, password: str = PASSWORD, new_client: bool = False):
        user_client = TestClient(app) if new_client else client
        return user_client, register_and_login(user_client, username, password)

    return _login


@pytest.fixture
def logged_in_client(login_as) -> TestClient:
    user_client, _session_id = login_as('alice')
    return user_client
