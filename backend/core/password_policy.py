from core.config import settings


class PasswordPolicyError(ValueError):
    pass


def validate_password(password: str) -> None:
    """Raise PasswordPolicyError if the password cannot be stored."""
    min_length = settings.PASSWORD_MIN_LENGTH
    if not password or len(password) < min_length:
        raise PasswordPolicyError(f"Password must be at least {min_length} characters")
    # bcrypt only looks at the first 72 bytes
    if len(password.encode("utf-8")) > 72:
        raise PasswordPolicyError("Password must be at most 72 bytes")
