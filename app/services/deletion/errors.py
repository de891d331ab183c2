"""Application-level rejections raised by the deletion authorization flow.

Every error carries a stable ``code`` for clients, the HTTP status it maps
to, and a user-facing ``message``. Messages never say whether an email
belongs to an account, nor which of the two dual-code values was wrong.
"""

from fastapi import status


class DeletionError(Exception):
    code = "DELETION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "The deletion request could not be completed."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFound(DeletionError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "This deletion link is not valid. Please start again."


class Expired(DeletionError):
    code = "EXPIRED"
    status_code = status.HTTP_410_GONE
    message = "This deletion request has expired. Please start again."


class AlreadyConsumed(DeletionError):
    code = "ALREADY_CONSUMED"
    status_code = status.HTTP_409_CONFLICT
    message = "This deletion request has already been submitted."


class Invalidated(DeletionError):
    code = "INVALIDATED"
    status_code = status.HTTP_409_CONFLICT
    message = "This deletion request was replaced by a newer one. Use the most recent link."


class MethodMismatch(DeletionError):
    code = "METHOD_MISMATCH"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "This verification does not match the deletion request."


class InvalidProof(DeletionError):
    code = "INVALID_PROOF"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Verification failed. Check your codes and try again."


class Locked(DeletionError):
    code = "LOCKED"
    status_code = status.HTTP_423_LOCKED
    message = "Too many failed attempts. Please start the deletion process again."


class RateLimited(DeletionError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."
