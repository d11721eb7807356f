from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from synapse.auth.dependencies import get_token_claims, get_token_service
from synapse.auth.jwt_handler import TokenService
from synapse.database import get_db
from synapse.services.credential_store import CredentialStore, public_user

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    college: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None


def get_credential_store(request: Request, db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db, request.app.state.password_hasher)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    store: CredentialStore = Depends(get_credential_store),
    token_service: TokenService = Depends(get_token_service),
):
    user = store.register(data.name, data.email, data.password, data.college)
    return {
        "message": "User registered successfully",
        "token": token_service.issue(user.id, user.email),
        "user": public_user(user),
    }


@router.post("/login")
def login(
    data: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    token_service: TokenService = Depends(get_token_service),
):
    user = store.authenticate(data.email, data.password)
    return {
        "message": "Login successful",
        "token": token_service.issue(user.id, user.email),
        "user": public_user(user),
    }


@router.get("/profile")
def profile(
    claims: dict = Depends(get_token_claims),
    store: CredentialStore = Depends(get_credential_store),
):
    user = store.get_profile(claims["userId"])
    return {"user": public_user(user)}
