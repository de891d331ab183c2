"""Application-wide constants."""

# API Configuration
API_VERSION = "v1"
API_PREFIX = f"/auth/{API_VERSION}"

# Client-side carriers for the pending token across page navigation
PENDING_TOKEN_PARAM = "pendingToken"
ACCOUNT_TYPE_PARAM = "accountType"

# Pending token entropy (bytes fed to secrets.token_urlsafe)
PENDING_TOKEN_BYTES = 32

# Concurrent initiations that collide on the live-token index are retried
INITIATE_MAX_RETRIES = 3

# User-facing messages
INITIATE_MESSAGE = (
    "If an account matches this email, verification instructions have been sent. "
    "Check your inbox and phone to continue."
)
CONFIRM_MESSAGE_TEMPLATE = (
    "Your account deletion request has been successfully submitted for processing. "
    "Deletion will be completed within {days} days."
)
