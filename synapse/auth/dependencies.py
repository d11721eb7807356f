from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from synapse.auth.jwt_handler import TokenService
from synapse.core.errors import AuthRequiredError

security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise AuthRequiredError()
    return token_service.verify(credentials.credentials)
