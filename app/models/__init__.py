from app.db.database import Base
from app.models.account import Account, AccountType
from app.models.deletion_request import (
    DeletionRequest,
    DeletionStatus,
    InvalidationReason,
    VerificationMethod,
    TERMINAL_STATUSES,
)
from app.models.deletion_initiation_attempt import DeletionInitiationAttempt

__all__ = [
    "Base",
    "Account",
    "AccountType",
    "DeletionRequest",
    "DeletionStatus",
    "InvalidationReason",
    "VerificationMethod",
    "TERMINAL_STATUSES",
    "DeletionInitiationAttempt",
]
