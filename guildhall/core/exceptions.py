"""Domain errors raised by services and rendered as HTTP responses by the app."""

from fastapi import status


class GuildhallError(Exception):
    """Base error carrying a short user-facing message and the HTTP status it maps to."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class BadInputError(GuildhallError):
    """Malformed input: wallet address, request body, password confirmation."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(GuildhallError):
    """Bad credentials, invalid or reused token, invalid signature."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(GuildhallError):
    """Caller is authenticated but not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(GuildhallError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(GuildhallError):
    """Unique email, username or wallet address already taken."""

    status_code = status.HTTP_409_CONFLICT
