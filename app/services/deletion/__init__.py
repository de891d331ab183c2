"""Account deletion authorization package."""

from app.services.deletion.deletion_service import (
    ConfirmReceipt,
    DeletionAuthorizationService,
    InitiateResult,
    SweepStats,
    deletion_service,
)
from app.services.deletion.errors import DeletionError
from app.services.deletion.verification import DeletionProof

__all__ = [
    "ConfirmReceipt",
    "DeletionAuthorizationService",
    "DeletionError",
    "DeletionProof",
    "InitiateResult",
    "SweepStats",
    "deletion_service",
]
