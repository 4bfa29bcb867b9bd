"""
Domain errors.

Every intentional failure (not found, validation, conflict) is an AppError
carrying the HTTP status it maps to. Anything else reaching the exception
handlers is treated as an internal error.
"""


class AppError(Exception):
    """Operational error with an HTTP status code"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self):
        return f"<{type(self).__name__}(status_code={self.status_code}, message='{self.message}')>"


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InvalidStageTransitionError(ConflictError):
    """Raised when a maintenance request is moved along a disallowed edge."""

    def __init__(self, from_stage: str, to_stage: str):
        super().__init__(f"Cannot move request from '{from_stage}' to '{to_stage}'")
        self.from_stage = from_stage
        self.to_stage = to_stage
