"""Client side of the deletion flow: session carrying and the HTTP client."""

from app.client.deletion_client import (
    ClientValidationError,
    DeletionClient,
    DeletionNetworkError,
    DeletionRejectedError,
)
from app.client.session_bridge import (
    PendingDeletionSession,
    SessionStore,
    build_confirm_url,
    resolve_pending_session,
)

__all__ = [
    "ClientValidationError",
    "DeletionClient",
    "DeletionNetworkError",
    "DeletionRejectedError",
    "PendingDeletionSession",
    "SessionStore",
    "build_confirm_url",
    "resolve_pending_session",
]
