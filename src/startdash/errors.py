GENERIC_ERROR = "Unknown error"


class StartdashError(Exception):
    pass


class ValidationError(StartdashError):
    """A required field was empty; nothing was sent."""


class BackendError(StartdashError):
    """The backend answered with a non-success status."""

    def __init__(self, message: str = GENERIC_ERROR, status: int | None = None):
        super().__init__(message or GENERIC_ERROR)
        self.message = message or GENERIC_ERROR
        self.status = status


class AuthorizationError(BackendError):
    pass


class BackendUnavailable(BackendError):
    pass
