import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from synapse.auth.passwords import PasswordHasher
from synapse.core.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from synapse.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def public_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "college": user.college or "",
    }


class CredentialStore:
    def __init__(self, db: Session, hasher: PasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    def _find_by_email(self, email: str) -> User | None:
        return self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        college: str | None = None,
    ) -> User:
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        if self._find_by_email(email) is not None:
            raise DuplicateEmailError()

        user = User(
            name=name,
            email=email,
            hashed_password=self.hasher.hash(password),
            college=(college or "").strip(),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            self.db.rollback()
            raise DuplicateEmailError() from exc
        self.db.refresh(user)

        logger.info("Registered user id=%s", user.id)
        return user

    def authenticate(self, email: str | None, password: str | None) -> User:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self._find_by_email(email)
        if user is None or not self.hasher.verify(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user

    def get_profile(self, user_id: int | str) -> User:
        try:
            user = self.db.get(User, int(user_id))
        except (TypeError, ValueError):
            user = None
        if user is None:
            raise NotFoundError("User not found")
        return user

    def count(self) -> int:
        return self.db.execute(select(func.count(User.id))).scalar_one()
