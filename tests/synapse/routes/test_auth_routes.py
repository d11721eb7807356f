from datetime import timedelta

from synapse.auth.jwt_handler import TokenService


def test_register_returns_token_and_public_user(client) -> None:
    response = client.post(
        '/api/auth/register',
        json={'name': 'Ada', 'email': 'Ada@Example.edu', 'password': 'secret123', 'college': 'X'},
    )

    assert response.status_code == 201
    body = response.json()
    assert body['message'] == 'User registered successfully'
    assert body['token']
    assert body['user'] == {'id': body['user']['id'], 'name': 'Ada', 'email': 'ada@example.edu', 'college': 'X'}
    assert 'password' not in response.text
    assert 'hashed_password' not in response.text


def test_register_duplicate_email_returns_400(client, register_user) -> None:
    register_user(email='ada@example.edu')

    response = client.post(
        '/api/auth/register',
        json={'name': 'Other', 'email': 'ADA@example.edu', 'password': 'secret123'},
    )

    assert response.status_code == 400
    assert response.json() == {'error': 'User with this email already exists'}


def test_register_missing_fields_returns_400(client) -> None:
    response = client.post('/api/auth/register', json={'email': 'ada@example.edu'})

    assert response.status_code == 400
    assert response.json() == {'error': 'Name, email, and password are required'}


def test_register_without_body_returns_400(client) -> None:
    response = client.post('/api/auth/register')

    assert response.status_code == 400
    assert 'error' in response.json()


def test_register_short_password_returns_400(client) -> None:
    response = client.post('/api/auth/register', json={'name': 'Ada', 'email': 'a@b.c', 'password': '123'})

    assert response.status_code == 400
    assert response.json() == {'error': 'Password must be at least 6 characters long'}


def test_login_returns_token_for_valid_credentials(client, register_user) -> None:
    registered = register_user(email='ada@example.edu', password='secret123')

    response = client.post('/api/auth/login', json={'email': 'ada@example.edu', 'password': 'secret123'})

    assert response.status_code == 200
    body = response.json()
    assert body['message'] == 'Login successful'
    assert body['user'] == registered['user']
    assert client.app.state.token_service.verify(body['token'])['userId'] == registered['user']['id']


def test_login_failures_are_indistinguishable(client, register_user) -> None:
    register_user(email='ada@example.edu', password='secret123')

    wrong_password = client.post('/api/auth/login', json={'email': 'ada@example.edu', 'password': 'nope-nope'})
    unknown_email = client.post('/api/auth/login', json={'email': 'who@example.edu', 'password': 'secret123'})

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.content == unknown_email.content
    assert wrong_password.json() == {'error': 'Invalid email or password'}


def test_profile_returns_current_user(client, register_user) -> None:
    registered = register_user()

    response = client.get('/api/auth/profile', headers={'Authorization': f"Bearer {registered['token']}"})

    assert response.status_code == 200
    assert response.json() == {'user': registered['user']}


def test_profile_without_token_returns_401(client) -> None:
    response = client.get('/api/auth/profile')

    assert response.status_code == 401
    assert response.json() == {'error': 'Access token required'}


def test_profile_with_invalid_token_returns_403(client) -> None:
    response = client.get('/api/auth/profile', headers={'Authorization': 'Bearer garbage'})

    assert response.status_code == 403
    assert response.json() == {'error': 'Invalid or expired token'}


def test_profile_with_expired_token_returns_403(client, settings, register_user) -> None:
    registered = register_user()
    expired = TokenService(settings.jwt_secret_key, expires_in=timedelta(seconds=-1)).issue(
        registered['user']['id'], registered['user']['email']
    )

    response = client.get('/api/auth/profile', headers={'Authorization': f'Bearer {expired}'})

    assert response.status_code == 403


def test_profile_for_unknown_user_returns_404(client) -> None:
    token = client.app.state.token_service.issue(9999, 'ghost@example.edu')

    response = client.get('/api/auth/profile', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 404
    assert response.json() == {'error': 'User not found'}
