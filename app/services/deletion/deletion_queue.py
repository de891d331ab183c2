"""Hand-off of verified deletions to the team that performs them."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.config import Settings, settings
from app.services.email import DeletionNotificationData, EmailService, get_email_service
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeletionHandoff:
    request_id: UUID
    account_id: UUID
    account_type: str
    account_email: str
    verified_at: datetime
    deletion_due_at: datetime


class DeletionQueue:
    """Sink for verified deletions. Processing on the far side is not ours."""

    async def submit(self, handoff: DeletionHandoff) -> bool:
        raise NotImplementedError


class NotificationDeletionQueue(DeletionQueue):
    """Queues a deletion by emailing the operations mailbox."""

    def __init__(self, config: Settings = settings, email_service: EmailService | None = None):
        self.config = config
        self._email_service = email_service

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            self._email_service = get_email_service()
        return self._email_service

    async def submit(self, handoff: DeletionHandoff) -> bool:
        sent = await self.email_service.send_deletion_request_notification(
            self.config.deletion_ops_email,
            DeletionNotificationData(
                account_type=handoff.account_type,
                account_email=handoff.account_email,
                request_id=str(handoff.request_id),
                verified_at=handoff.verified_at,
                deletion_due_at=handoff.deletion_due_at,
            ),
            self.config.organization_name,
        )
        if sent:
            logger.info(f"Deletion request {handoff.request_id} queued for account {handoff.account_id}")
        else:
            logger.error(f"Deletion request {handoff.request_id} could not be queued")
        return sent
