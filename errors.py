class ApiError(Exception):
    """Base error for failures that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ApiError):
    """Raised when a request is well-formed but not allowed, e.g. self-friending."""

    status_code = 400


class ConflictError(ApiError):
    """Raised when a unique field (email, username) is already taken."""

    status_code = 400


class InvalidCredentialsError(ApiError):
    """Raised when a login password does not match."""

    status_code = 400


class UnauthorizedError(ApiError):
    """Raised when the bearer token is missing or invalid."""

    status_code = 401


class ForbiddenError(ApiError):
    """Raised when the caller acts on a record they do not own."""

    status_code = 403


class NotFoundError(ApiError):
    """Raised when a user or post does not exist."""

    status_code = 404


class UnknownUserError(ApiError):
    """Raised when a login names an email nobody registered."""

    status_code = 400
