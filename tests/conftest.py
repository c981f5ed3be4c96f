import pytest
from fastapi.testclient import TestClient

from crop_api.core.config import Settings
from crop_api.database import Base, build_engine, build_session_factory, create_schema
from crop_api.main import create_app

TEST_SECRET = 'test-secret-key-for-the-crop-api-suite'


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_env='test',
        database_url='sqlite://',
        jwt_secret_key=TEST_SECRET,
        upload_dir=str(tmp_path / 'uploads'),
        log_level='WARNING',
    )


@pytest.fixture
def db():
    engine = build_engine('sqlite://')
    create_schema(engine)
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user through the API and return their auth header."""

    def _register(username: str, email: str, password: str = 'secret123') -> dict:
        response = client.post(
            '/api/auth/register',
            json={'username': username, 'email': email, 'password': password},
        )
        assert response.status_code == 201, response.text
        return {'x-auth-token': response.json()['token']}

    return _register
