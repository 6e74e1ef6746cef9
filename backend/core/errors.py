from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base for errors rendered to clients as ``{"error": detail}``."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(status_code=self.status_code_default, detail=message or self.message_default)


class ValidationError(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Missing required fields"


class NotFoundError(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Email not found"


class InvalidOrExpiredError(AppError):
    # Covers wrong code, expired code, used code and wrong email alike
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Invalid or expired OTP"


class AuthenticationError(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Could not validate credentials"

    def __init__(self, message: str = None):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class DownstreamError(AppError):
    """Data store, email API or auth failure. The cause is logged, never returned."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Internal server error"
