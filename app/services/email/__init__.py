"""Email service package."""

from app.services.email.email_config import EmailProvider
from app.services.email.email_service import (
    DeletionNotificationData,
    EmailService,
    get_email_service,
)

__all__ = [
    "EmailProvider",
    "EmailService",
    "DeletionNotificationData",
    "get_email_service",
]
