"""Error classes raised by the booking core and the routes.

Each error carries the HTTP status the API reports it with; the mapping to a
response lives in ``medmeet.main``.
"""

from fastapi import status


class MedMeetError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error.'

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(MedMeetError, ValueError):
    """A required field is missing or malformed."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'


class AuthenticationError(MedMeetError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials'


class PermissionDeniedError(MedMeetError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Access denied'


class NotFoundError(MedMeetError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'


class ConflictError(MedMeetError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict.'


class StorageError(MedMeetError):
    """The database is unreachable or rejected a write."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Database unavailable. Please try again later.'
