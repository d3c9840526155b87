import pytest
from fastapi.testclient import TestClient

from openwings.auth import sessions
from openwings.core.config import Settings
from openwings.database import Database
from openwings.main import create_app
from openwings.models.session import UserSession
from openwings.models.user import User
from openwings.routes.auth_routes import LoginRequest, RegisterRequest

PASSWORD = 'S3cret!'


def test_register_request_normalizes_fields() -> None:
    request = RegisterRequest(username=' alice ', password=PASSWORD, email=' a@x.com ')

    assert request.username == 'alice'
    assert request.email == 'a@x.com'


def test_login_request_rejects_blank_username() -> None:
    with pytest.raises(ValueError):
        LoginRequest(username='   ', password=PASSWORD)


def test_register_returns_201(client: TestClient) -> None:
    response = client.post('/api/register', json={'username': 'alice', 'password': PASSWORD, 'email': 'a@x.com'})

    assert response.status_code == 201


def test_register_duplicate_returns_generic_400(client: TestClient, login_as) -> None:
    login_as('alice')

    response = client.post('/api/register', json={'username': 'ALICE', 'password': 'x', 'email': 'other@x.com'})

    assert response.status_code == 400
    assert response.json() == {'error': 'Registration failed'}


@pytest.mark.parametrize(
    'payload',
    [
        {'username': 'alice', 'password': PASSWORD},
        {'username': '', 'password': PASSWORD, 'email': 'a@x.com'},
        {'username': 'alice', 'password': PASSWORD, 'email': 'not-an-email'},
    ],
)
def test_register_rejects_malformed_input(client: TestClient, payload: dict) -> None:
    response = client.post('/api/register', json=payload)

    assert response.status_code == 400
    assert response.json() == {'error': 'Invalid request'}


def test_login_sets_session_cookie(client: TestClient) -> None:
    client.post('/api/register', json={'username': 'alice', 'password': PASSWORD, 'email': 'a@x.com'})

    response = client.post('/api/login', json={'username': 'Alice', 'password': PASSWORD})

    assert response.status_code == 200
    set_cookie = response.headers['set-cookie']
    assert set_cookie.startswith('sid=')
    assert 'HttpOnly' in set_cookie
    assert 'Max-Age=2700' in set_cookie
    assert 'Path=/' in set_cookie
    assert 'SameSite=strict' in set_cookie or 'SameSite=Strict' in set_cookie


@pytest.mark.parametrize(('username', 'password'), [('alice', 'wrong'), ('nobody', PASSWORD)])
def test_login_failures_share_one_response(client: TestClient, username: str, password: str) -> None:
    client.post('/api/register', json={'username': 'alice', 'password': PASSWORD, 'email': 'a@x.com'})

    response = client.post('/api/login', json={'username': username, 'password': password})

    assert response.status_code == 401
    assert response.json() == {'error': 'Invalid username or password'}
    assert 'set-cookie' not in response.headers


def test_login_with_malformed_stored_password_returns_401(client: TestClient, db) -> None:
    db.add(User(username='broken', email='b@x.com', password_hash='abcd:héllo'))
    db.commit()

    response = client.post('/api/login', json={'username': 'broken', 'password': 'x'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Invalid username or password'}


def test_protected_route_redirects_without_session(client: TestClient) -> None:
    response = client.get('/api/user', follow_redirects=False)

    assert response.status_code == 302
    assert response.headers['location'] == '/login'


def test_protected_route_redirects_with_unknown_session(client: TestClient) -> None:
    client.cookies.set('sid', 'garbage')

    response = client.get('/profile', follow_redirects=False)

    assert response.status_code == 302
    assert response.headers['location'] == '/login'


def test_protected_route_redirects_with_expired_session(client: TestClient, login_as, db) -> None:
    _, token = login_as('alice')
    db.query(UserSession).filter(UserSession.id == token).update(
        {UserSession.expires_at: sessions.utcnow()}
    )
    db.commit()

    response = client.get('/api/user', follow_redirects=False)

    assert response.status_code == 302


def test_protected_route_accepts_valid_session(logged_in_client: TestClient) -> None:
    response = logged_in_client.get('/api/user')

    assert response.status_code == 200
    assert response.json() == {'username': 'alice', 'email': 'alice@example.com'}


def test_logout_deletes_session_and_clears_cookie(client: TestClient, login_as, db) -> None:
    _, token = login_as('alice')

    response = client.post('/api/logout', follow_redirects=False)

    assert response.status_code == 302
    assert response.headers['location'] == '/login'
    assert db.query(UserSession).filter(UserSession.id == token).count() == 0

    client.cookies.set('sid', token)
    assert client.get('/api/user', follow_redirects=False).status_code == 302


def test_logout_without_session_still_redirects(client: TestClient) -> None:
    response = client.post('/api/logout', follow_redirects=False)

    assert response.status_code == 302


def test_app_lifecycle_opens_and_closes_database() -> None:
    database = Database('sqlite://')
    app = create_app(Settings(database_url='sqlite://'), database)

    with TestClient(app) as client:
        assert database.is_open
        client.post('/api/register', json={'username': 'alice', 'password': PASSWORD, 'email': 'a@x.com'})
        with database.scoped_session() as db:
            assert db.query(User).count() == 1

    assert not database.is_open


def test_production_rejects_sqlite_database() -> None:
    with pytest.raises(RuntimeError):
        create_app(Settings(database_url='sqlite://', app_env='production'), Database('sqlite://'))
