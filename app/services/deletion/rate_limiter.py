"""Rolling-hour limits on deletion initiation."""

import hashlib
from datetime import timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings
from app.models.deletion_initiation_attempt import DeletionInitiationAttempt
from app.services.deletion.errors import RateLimited
from app.utils.logger import get_logger
from app.utils.time_utils import utcnow

logger = get_logger(__name__)

WINDOW = timedelta(hours=1)


class InitiationRateLimiter:
    """Counts initiate calls per email and per client over the last hour.

    Attempts are recorded before the account lookup, so unknown emails are
    limited exactly like known ones.
    """

    def __init__(self, config: Settings = settings):
        self.config = config

    @staticmethod
    def hash_email(email: str) -> str:
        """SHA256 of the normalized email, for privacy-preserving counting."""
        return hashlib.sha256(email.lower().strip().encode()).hexdigest()

    async def check_and_record(self, db: AsyncSession, email: str, client_id: str) -> None:
        """
        Raises:
            RateLimited: either limit is already reached
        """
        email_hash = self.hash_email(email)
        since = utcnow() - WINDOW

        per_email = await self._count(
            db, DeletionInitiationAttempt.email_hash == email_hash, since
        )
        per_client = await self._count(
            db, DeletionInitiationAttempt.client_id == client_id, since
        )

        if per_email >= self.config.deletion_initiate_limit_per_email_per_hour:
            logger.warning(f"Initiation rate limit hit for email hash {email_hash[:8]}...")
            raise RateLimited()
        if per_client >= self.config.deletion_initiate_limit_per_client_per_hour:
            logger.warning(f"Initiation rate limit hit for client {client_id}")
            raise RateLimited()

        db.add(DeletionInitiationAttempt(email_hash=email_hash, client_id=client_id))
        await db.commit()

    async def _count(self, db: AsyncSession, condition, since) -> int:
        result = await db.execute(
            select(func.count(DeletionInitiationAttempt.id)).where(
                condition, DeletionInitiationAttempt.created_at >= since
            )
        )
        return result.scalar_one()

    async def purge(self, db: AsyncSession) -> int:
        """Drop attempts that no longer count toward any window."""
        result = await db.execute(
            delete(DeletionInitiationAttempt).where(
                DeletionInitiationAttempt.created_at < utcnow() - WINDOW
            )
        )
        await db.commit()
        return result.rowcount


rate_limiter = InitiationRateLimiter()
