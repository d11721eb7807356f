"""Domain errors raised by the stores and mapped to ``{error}`` responses."""


class SynapseError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SynapseError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateEmailError(SynapseError):
    status_code = 400
    default_message = "User with this email already exists"


class InvalidCredentialsError(SynapseError):
    # Same text for unknown email and wrong password.
    status_code = 400
    default_message = "Invalid email or password"


class AuthRequiredError(SynapseError):
    status_code = 401
    default_message = "Access token required"


class InvalidTokenError(SynapseError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFoundError(SynapseError):
    status_code = 404
    default_message = "Not found"


class UnsupportedTypeError(SynapseError):
    status_code = 400
    default_message = "Only PDF, DOC, and DOCX files are allowed"


class TooLargeError(SynapseError):
    status_code = 400
    default_message = "File size too large. Maximum size is 10MB."


class InternalError(SynapseError):
    status_code = 500
    default_message = "Internal server error"
