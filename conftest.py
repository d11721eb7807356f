import io

import pytest
from fastapi.testclient import TestClient

from synapse.core.config import Settings
from synapse.database import init_database
from synapse.main import create_app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_env='test',
        database_url=f"sqlite:///{tmp_path / 'synapse-test.db'}",
        jwt_secret_key='test-secret',
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / 'uploads'),
        frontend_url='http://localhost:3000',
    )


@pytest.fixture
def app(settings):
    application = create_app(settings)
    init_database(application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def auth_headers(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def register_user(client):
    def _register(email='ada@example.edu', password='secret123', name='Ada', college='X') -> dict:
        response = client.post(
            '/api/auth/register',
            json={'name': name, 'email': email, 'password': password, 'college': college},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def upload_resource(client):
    def _upload(token, content=b'%PDF-1.4 test', filename='paper.pdf', **fields):
        form = {
            'title': 'Midterm 2024',
            'subject': 'Physics',
            'year': '2024',
            'college': 'X',
            'type': 'Notes',
        }
        form.update(fields)
        return client.post(
            '/api/resources/upload',
            data=form,
            files={'file': (filename, io.BytesIO(content), 'application/pdf')},
            headers=auth_headers(token),
        )

    return _upload
