# app/utils/errors.py
"""
Error taxonomy for task operations.

ValidationError, ForbiddenError and NotFoundError describe a wrong request and
are never worth retrying. TransientStoreError wraps persistence faults so the
caller can decide to retry.
"""


class TaskTrackerError(Exception):
    """Base class for all task operation errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrackerError):
    status_code = 422


class ForbiddenError(TaskTrackerError):
    status_code = 403


class NotFoundError(TaskTrackerError):
    status_code = 404


class TransientStoreError(TaskTrackerError):
    status_code = 503
