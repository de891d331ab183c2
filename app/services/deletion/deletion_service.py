"""Deletion authorization: the initiate / confirm state machine.

Initiate issues a single-use pending token and dispatches a challenge;
Confirm checks the proof and moves the request ``pending -> consumed``
exactly once before handing the account to the deletion queue.
"""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.client.session_bridge import build_confirm_url
from app.config import Settings, settings
from app.db import get_db_session
from app.models.account import Account
from app.models.deletion_request import DeletionRequest, DeletionStatus, InvalidationReason
from app.services.deletion.challenge_issuer import ChallengeIssuer, challenge_issuer
from app.services.deletion.deletion_queue import (
    DeletionHandoff,
    DeletionQueue,
    NotificationDeletionQueue,
)
from app.services.deletion.dispatcher import BackgroundDispatcher, dispatcher
from app.services.deletion.errors import (
    AlreadyConsumed,
    Expired,
    Invalidated,
    InvalidProof,
    Locked,
    MethodMismatch,
    NotFound,
)
from app.services.deletion.rate_limiter import InitiationRateLimiter, rate_limiter
from app.services.deletion.token_store import (
    DeletionTokenStore,
    token_store,
)
from app.services.deletion.verification import DeletionProof, VerificationEvaluator
from app.utils.constants import CONFIRM_MESSAGE_TEMPLATE, INITIATE_MESSAGE
from app.utils.logger import get_logger, redact_token
from app.utils.sentry_utils import wrap_with_sentry
from app.utils.time_utils import is_past

logger = get_logger(__name__)


@dataclass
class InitiateResult:
    pending_token: str
    account_type: str
    message: str
    redirect_url: str


@dataclass
class ConfirmReceipt:
    message: str


@dataclass
class SweepStats:
    expired: int = 0
    purged: int = 0
    attempts_purged: int = 0
    handoffs_redriven: int = 0


class DeletionAuthorizationService:
    """Orchestrates account deletion authorization."""

    def __init__(
        self,
        config: Settings = settings,
        store: DeletionTokenStore = token_store,
        issuer: ChallengeIssuer = challenge_issuer,
        evaluator: VerificationEvaluator | None = None,
        limiter: InitiationRateLimiter = rate_limiter,
        queue: DeletionQueue | None = None,
        background: BackgroundDispatcher = dispatcher,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = get_db_session,
    ):
        self.config = config
        self.store = store
        self.issuer = issuer
        self.evaluator = evaluator or VerificationEvaluator(config.deletion_totp_valid_window)
        self.limiter = limiter
        self.queue = queue or NotificationDeletionQueue(config)
        self.background = background
        self.session_factory = session_factory

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(minutes=self.config.deletion_token_ttl_minutes)

    @property
    def deletion_hold(self) -> timedelta:
        return timedelta(days=self.config.deletion_hold_days)

    # ------------------------------------------------------------------
    # Initiate
    # ------------------------------------------------------------------

    async def initiate(
        self,
        db: AsyncSession,
        email: str,
        account_type: str,
        client_id: str,
    ) -> InitiateResult:
        """Start a deletion request for the account behind ``email``.

        The result has the same shape whether or not such an account
        exists. Unknown accounts get a stored decoy token that nobody can
        prove, so confirming it fails the same way as a wrong code.

        Raises:
            RateLimited: too many initiations for this email or client
        """
        email = email.strip().lower()
        await self.limiter.check_and_record(db, email, client_id)

        account = await self._find_account(db, email, account_type)
        if account is None:
            logger.info(f"Deletion initiated for unknown {account_type} account; issuing decoy")
            return await self._initiate_decoy(db, account_type)

        method = self.issuer.select_method(account)
        if method is None:
            logger.warning(f"Account {account.id} has no usable verification method; issuing decoy")
            return await self._initiate_decoy(db, account_type)

        challenge = self.issuer.issue(account, method)
        request = await self.store.create(
            db, account.id, account_type, challenge.material, self.token_ttl
        )

        if challenge.needs_dispatch:
            self.background.schedule(
                self.issuer.dispatch, challenge, name=f"deletion-codes-{request.id}"
            )

        logger.info(
            f"Deletion initiated for account {account.id} "
            f"(method={method.value}, token={redact_token(request.token)})"
        )
        return self._initiate_result(request.token, account_type)

    async def _initiate_decoy(self, db: AsyncSession, account_type: str) -> InitiateResult:
        request = await self.store.create(
            db, None, account_type, self.issuer.decoy(account_type), self.token_ttl
        )
        return self._initiate_result(request.token, account_type)

    def _initiate_result(self, token: str, account_type: str) -> InitiateResult:
        return InitiateResult(
            pending_token=token,
            account_type=account_type,
            message=INITIATE_MESSAGE,
            redirect_url=build_confirm_url(
                self.config.deletion_confirm_page_url, token, account_type
            ),
        )

    async def _find_account(self, db: AsyncSession, email: str, account_type: str) -> Account | None:
        result = await db.execute(
            select(Account).where(
                Account.account_type == account_type,
                Account.email == email,
            )
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    async def confirm(
        self,
        db: AsyncSession,
        token: str,
        account_type: str,
        proof: DeletionProof,
    ) -> ConfirmReceipt:
        """Verify ``proof`` and queue the account for deletion.

        Raises:
            NotFound, Expired, AlreadyConsumed, Invalidated, Locked:
                the token is unknown or no longer pending
            MethodMismatch: wrong account type or proof shape; no attempt counted
            InvalidProof: the proof failed; one attempt counted
        """
        request = await self.store.get(db, token)
        if request is None:
            raise NotFound()
        await self._ensure_pending(db, request)

        if request.account_type != account_type:
            logger.info(f"Account type mismatch on token {redact_token(token)}")
            raise MethodMismatch()
        self.evaluator.ensure_method(request, proof)

        account = None if request.is_decoy else await db.get(Account, request.account_id)
        try:
            self.evaluator.check(request, account, proof)
        except InvalidProof:
            outcome = await self.store.record_failed_attempt(
                db, token, self.config.deletion_max_failed_attempts
            )
            if outcome is None:
                await self._raise_for_current_state(db, token)
            elif outcome.locked:
                raise Locked()
            logger.info(f"Invalid proof for token {redact_token(token)} (attempt {outcome.attempt_count})")
            raise

        if not await self.store.consume(db, token, self.deletion_hold):
            await self._raise_for_current_state(db, token)

        logger.info(f"Deletion request {request.id} consumed for account {request.account_id}")
        self.background.schedule(self.hand_off, request.id, name=f"deletion-handoff-{request.id}")
        return ConfirmReceipt(
            message=CONFIRM_MESSAGE_TEMPLATE.format(days=self.config.deletion_hold_days)
        )

    async def _ensure_pending(self, db: AsyncSession, request: DeletionRequest) -> None:
        """Raise the terminal-appropriate error unless the request is live.

        An overdue pending request is expired on the spot.
        """
        if request.status == DeletionStatus.PENDING.value:
            if is_past(request.expires_at):
                await self.store.mark_expired(db, request.token)
                raise Expired()
            return
        if request.status == DeletionStatus.EXPIRED.value:
            raise Expired()
        if request.status == DeletionStatus.CONSUMED.value:
            raise AlreadyConsumed()
        if request.invalidated_reason == InvalidationReason.LOCKED.value:
            raise Locked()
        raise Invalidated()

    async def _raise_for_current_state(self, db: AsyncSession, token: str) -> None:
        """Called after a guarded update matched nothing: someone else moved the row."""
        request = await self.store.get(db, token)
        if request is None:
            raise NotFound()
        await self._ensure_pending(db, request)
        raise AlreadyConsumed()

    # ------------------------------------------------------------------
    # Hand-off and housekeeping
    # ------------------------------------------------------------------

    @wrap_with_sentry
    async def hand_off(self, request_id: UUID) -> bool:
        """Submit a consumed request to the deletion queue (own session)."""
        async with self.session_factory() as db:
            request = await db.get(DeletionRequest, request_id)
            if request is None or request.status != DeletionStatus.CONSUMED.value:
                logger.warning(f"Skipping hand-off for deletion request {request_id}: not consumed")
                return False
            if request.handed_off_at is not None:
                return True

            account = await db.get(Account, request.account_id)
            handoff = DeletionHandoff(
                request_id=request.id,
                account_id=request.account_id,
                account_type=request.account_type,
                account_email=account.email,
                verified_at=request.consumed_at,
                deletion_due_at=request.deletion_due_at,
            )
            if not await self.queue.submit(handoff):
                return False
            await self.store.mark_handed_off(db, request.id)
            return True

    async def redrive_handoffs(self, db: AsyncSession) -> int:
        """Retry hand-offs that never completed after the grace period."""
        stale = await self.store.list_unhanded(
            db, timedelta(minutes=self.config.deletion_handoff_grace_minutes)
        )
        delivered = 0
        for request in stale:
            if await self.hand_off(request.id):
                delivered += 1
        if stale:
            logger.info(f"Re-drove {delivered}/{len(stale)} deletion hand-off(s)")
        return delivered

    async def sweep(self, db: AsyncSession) -> SweepStats:
        """Expire overdue tokens, purge old terminal rows and rate-limit attempts."""
        stats = SweepStats()
        stats.expired = await self.store.sweep_expired(db)
        stats.purged = await self.store.purge_terminal(
            db, timedelta(days=self.config.deletion_retention_days)
        )
        stats.attempts_purged = await self.limiter.purge(db)
        stats.handoffs_redriven = await self.redrive_handoffs(db)
        return stats


deletion_service = DeletionAuthorizationService()
