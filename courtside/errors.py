from typing import List, Dict


class CourtsideError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 500
    default_message = 'Server Error'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'msg': self.message}


class ValidationError(CourtsideError):
    status_code = 400
    default_message = 'Invalid input'

    def __init__(self, errors: List[Dict]):
        self.errors = errors
        super().__init__(errors[0]['msg'] if errors else None)

    def to_dict(self) -> dict:
        return {'errors': self.errors}


class NotFound(CourtsideError):
    status_code = 404
    default_message = 'Not found'


class Forbidden(CourtsideError):
    status_code = 403
    default_message = 'Access denied'


class InvalidState(CourtsideError):
    status_code = 400
    default_message = 'Invalid state'


class Conflict(CourtsideError):
    status_code = 409
    default_message = 'Game was modified by another request, reload and try again'


class InternalError(CourtsideError):
    """Persistence failure; details stay in the server log."""
