"""Error taxonomy shared by the policy layer and the HTTP handlers.

Each class carries the HTTP status and title used when it is rendered as a
problem-details response, plus any extra members the client needs to bring
the user back to an interactive state.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class SchoolError(Exception):
    """Base class for errors surfaced to the signed-in teacher."""

    status = 500
    title = 'Internal Server Error'

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def extra(self) -> Dict[str, Any]:
        return {}


class PermissionDenied(SchoolError):
    """Scope resolution failed or the record is not the caller's to touch."""

    status = 403
    title = 'Permission Denied'

    def extra(self) -> Dict[str, Any]:
        return {'action': 'dashboard'}


class RecordNotFound(PermissionDenied):
    """A referenced teacher, student or assignment does not exist."""

    title = 'Record Not Found'


class NoAssignments(PermissionDenied):
    """The caller has no grade/subject to act on."""

    title = 'No Assignments'


class NotSignedIn(SchoolError):
    status = 401
    title = 'Sign In Required'

    def __init__(self, detail: str = 'Please sign in to continue', login_url: str = '/api/auth/login') -> None:
        super().__init__(detail)
        self.login_url = login_url

    def extra(self) -> Dict[str, Any]:
        return {'redirect': self.login_url}


class ValidationFailed(SchoolError):
    """One or more form fields are missing or malformed."""

    status = 422
    title = 'Validation Failed'

    def __init__(self, errors: Mapping[str, str], detail: str = 'Please correct the highlighted fields') -> None:
        super().__init__(detail)
        self.errors = dict(errors)

    def extra(self) -> Dict[str, Any]:
        return {'errors': self.errors}


class StoreUnavailable(SchoolError):
    """The database rejected or failed an operation; the user may retry."""

    status = 503
    title = 'Store Unavailable'

    def extra(self) -> Dict[str, Any]:
        return {'retryable': True}


class BatchWriteFailed(StoreUnavailable):
    """A member of a batch write failed and the batch was rolled back."""

    def __init__(self, detail: str, failed_index: Optional[int] = None, size: int = 0) -> None:
        super().__init__(detail)
        self.failed_index = failed_index
        self.size = size

    def extra(self) -> Dict[str, Any]:
        extra = super().extra()
        extra['failed_index'] = self.failed_index
        extra['batch_size'] = self.size
        return extra


__all__ = [
    'BatchWriteFailed',
    'NoAssignments',
    'NotSignedIn',
    'PermissionDenied',
    'RecordNotFound',
    'SchoolError',
    'StoreUnavailable',
    'ValidationFailed',
]
