"""Durable store for pending deletion tokens.

All state transitions are single UPDATE statements guarded on the current
status, so concurrent requests racing on one token (double submit, two
tabs) or one account (double click on initiate) cannot both win.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.deletion_request import (
    TERMINAL_STATUSES,
    DeletionRequest,
    DeletionStatus,
    InvalidationReason,
)
from app.utils.constants import INITIATE_MAX_RETRIES, PENDING_TOKEN_BYTES
from app.utils.logger import get_logger, redact_token
from app.utils.time_utils import utcnow

logger = get_logger(__name__)


def generate_pending_token() -> str:
    """Opaque, URL-safe bearer token."""
    return secrets.token_urlsafe(PENDING_TOKEN_BYTES)


@dataclass
class ChallengeMaterial:
    """Hashed verification material persisted with a request."""

    method: str
    email_code_hash: str | None = None
    email_code_expires_at: datetime | None = None
    sms_code_hash: str | None = None
    sms_code_expires_at: datetime | None = None


@dataclass
class AttemptResult:
    attempt_count: int
    locked: bool


class LiveTokenConflict(Exception):
    """Another initiation for the same account kept winning the live-token index."""


class DeletionTokenStore:
    """Create, look up, consume and expire ``DeletionRequest`` rows."""

    async def create(
        self,
        db: AsyncSession,
        account_id: UUID | None,
        account_type: str,
        challenge: ChallengeMaterial,
        ttl: timedelta,
    ) -> DeletionRequest:
        """Invalidate the account's live request and insert a fresh one.

        A None ``account_id`` stores a decoy; decoys never supersede each other.

        Both statements commit together. If a concurrent initiation inserts
        its own pending row first, the unique index rejects ours and the
        sequence is retried, superseding the other row.

        Raises:
            LiveTokenConflict: when every retry lost the race
        """
        for attempt in range(1, INITIATE_MAX_RETRIES + 1):
            now = utcnow()
            superseded_count = 0
            if account_id is not None:
                superseded = await db.execute(
                    update(DeletionRequest)
                    .where(
                        DeletionRequest.account_id == account_id,
                        DeletionRequest.status == DeletionStatus.PENDING.value,
                    )
                    .values(
                        status=DeletionStatus.INVALIDATED.value,
                        invalidated_reason=InvalidationReason.SUPERSEDED.value,
                    )
                    .execution_options(synchronize_session=False)
                )
                superseded_count = superseded.rowcount

            request = DeletionRequest(
                token=generate_pending_token(),
                account_id=account_id,
                account_type=account_type,
                method=challenge.method,
                email_code_hash=challenge.email_code_hash,
                email_code_expires_at=challenge.email_code_expires_at,
                sms_code_hash=challenge.sms_code_hash,
                sms_code_expires_at=challenge.sms_code_expires_at,
                status=DeletionStatus.PENDING.value,
                attempt_count=0,
                created_at=now,
                expires_at=now + ttl,
            )
            db.add(request)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.warning(
                    f"Live-token conflict for account {account_id} "
                    f"(attempt {attempt}/{INITIATE_MAX_RETRIES}), retrying"
                )
                continue

            if superseded_count:
                logger.info(f"Superseded {superseded_count} pending deletion request(s) for account {account_id}")
            logger.debug(f"Created deletion request {request.id} token={redact_token(request.token)}")
            return request

        raise LiveTokenConflict(f"Could not create a live deletion request for account {account_id}")

    async def get(self, db: AsyncSession, token: str) -> DeletionRequest | None:
        result = await db.execute(
            select(DeletionRequest)
            .where(DeletionRequest.token == token)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_live_for_account(self, db: AsyncSession, account_id: UUID) -> DeletionRequest | None:
        result = await db.execute(
            select(DeletionRequest).where(
                DeletionRequest.account_id == account_id,
                DeletionRequest.status == DeletionStatus.PENDING.value,
            )
        )
        return result.scalar_one_or_none()

    async def consume(
        self,
        db: AsyncSession,
        token: str,
        deletion_hold: timedelta,
    ) -> bool:
        """Compare-and-set ``pending -> consumed``.

        Returns:
            True for exactly one caller per token; False for everyone else
        """
        now = utcnow()
        result = await db.execute(
            update(DeletionRequest)
            .where(
                DeletionRequest.token == token,
                DeletionRequest.status == DeletionStatus.PENDING.value,
                DeletionRequest.expires_at >= now,
            )
            .values(
                status=DeletionStatus.CONSUMED.value,
                consumed_at=now,
                deletion_due_at=now + deletion_hold,
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount == 1

    async def record_failed_attempt(
        self,
        db: AsyncSession,
        token: str,
        max_failed_attempts: int,
    ) -> AttemptResult | None:
        """Count a failed proof; failure number ``max_failed_attempts`` burns the token.

        The increment and the lockout flip happen in one statement. An overdue
        token is left alone so the caller reports it as expired.

        Returns:
            The new counter and whether the token is now locked, or None if
            the request is no longer pending or has run past its expiry
        """
        burn = DeletionRequest.attempt_count + 1 >= max_failed_attempts
        result = await db.execute(
            update(DeletionRequest)
            .where(
                DeletionRequest.token == token,
                DeletionRequest.status == DeletionStatus.PENDING.value,
                DeletionRequest.expires_at >= utcnow(),
            )
            .values(
                attempt_count=DeletionRequest.attempt_count + 1,
                status=case(
                    (burn, DeletionStatus.INVALIDATED.value),
                    else_=DeletionRequest.status,
                ),
                invalidated_reason=case(
                    (burn, InvalidationReason.LOCKED.value),
                    else_=DeletionRequest.invalidated_reason,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        if result.rowcount != 1:
            return None

        refreshed = await self.get(db, token)
        locked = (
            refreshed.status == DeletionStatus.INVALIDATED.value
            and refreshed.invalidated_reason == InvalidationReason.LOCKED.value
        )
        if locked:
            logger.warning(f"Deletion token {redact_token(token)} locked after {refreshed.attempt_count} failed attempts")
        return AttemptResult(attempt_count=refreshed.attempt_count, locked=locked)

    async def mark_expired(self, db: AsyncSession, token: str) -> bool:
        """Lazily expire one overdue pending request."""
        result = await db.execute(
            update(DeletionRequest)
            .where(
                DeletionRequest.token == token,
                DeletionRequest.status == DeletionStatus.PENDING.value,
                DeletionRequest.expires_at < utcnow(),
            )
            .values(status=DeletionStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount == 1

    async def sweep_expired(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Mark every overdue pending request expired."""
        result = await db.execute(
            update(DeletionRequest)
            .where(
                DeletionRequest.status == DeletionStatus.PENDING.value,
                DeletionRequest.expires_at < (now or utcnow()),
            )
            .values(status=DeletionStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount

    async def purge_terminal(
        self,
        db: AsyncSession,
        retention: timedelta,
        now: datetime | None = None,
    ) -> int:
        """Delete terminal requests older than the retention window.

        Consumed requests are kept until the deletion queue has accepted them.
        """
        cutoff = (now or utcnow()) - retention
        result = await db.execute(
            delete(DeletionRequest)
            .where(
                DeletionRequest.status.in_(TERMINAL_STATUSES),
                DeletionRequest.created_at < cutoff,
                (DeletionRequest.status != DeletionStatus.CONSUMED.value)
                | DeletionRequest.handed_off_at.is_not(None),
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount

    async def mark_handed_off(self, db: AsyncSession, request_id: UUID) -> None:
        await db.execute(
            update(DeletionRequest)
            .where(DeletionRequest.id == request_id)
            .values(handed_off_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    async def list_unhanded(
        self,
        db: AsyncSession,
        older_than: timedelta,
        limit: int = 50,
    ) -> list[DeletionRequest]:
        """Consumed requests whose deletion-queue hand-off never completed."""
        cutoff = utcnow() - older_than
        result = await db.execute(
            select(DeletionRequest)
            .where(
                DeletionRequest.status == DeletionStatus.CONSUMED.value,
                DeletionRequest.handed_off_at.is_(None),
                DeletionRequest.consumed_at < cutoff,
            )
            .order_by(DeletionRequest.consumed_at)
            .limit(limit)
        )
        return list(result.scalars().all())


token_store = DeletionTokenStore()
