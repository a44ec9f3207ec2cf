# app/errors.py
# Role: Error taxonomy shared by services and routes.
#       Every error carries a client-safe message and the HTTP status it maps to;
#       the handlers registered in app/application.py turn them into {"message": ...}.

"""
Application errors.

Services raise these; they never build HTTP responses themselves.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Malformed or out-of-range input the client can fix."""

    status_code = 400


class Conflict(AppError):
    """Uniqueness violation (e.g. email already registered)."""

    status_code = 400


class Unauthorized(AppError):
    """Missing, invalid or expired session (401, or 403 for a bad token)."""

    status_code = 401


class NotFound(AppError):
    """Absent *or* not owned by the caller; both look the same to the client."""

    status_code = 404


class DependencyFailure(AppError):
    """Mail transport or another collaborator is unavailable."""

    status_code = 500
