"""Tests for DeletionTokenStore state transitions."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.models import DeletionRequest, DeletionStatus, InvalidationReason
from app.services.deletion.token_store import ChallengeMaterial, DeletionTokenStore
from app.utils.time_utils import utcnow

TTL = timedelta(minutes=15)
HOLD = timedelta(days=30)


@pytest.fixture
def store():
    return DeletionTokenStore()


def totp_material() -> ChallengeMaterial:
    return ChallengeMaterial(method="totp")


async def count_pending(db, account_id) -> int:
    result = await db.execute(
        select(func.count(DeletionRequest.id)).where(
            DeletionRequest.account_id == account_id,
            DeletionRequest.status == DeletionStatus.PENDING.value,
        )
    )
    return result.scalar_one()


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_pending_request(self, db_session, store, worker):
        request = await store.create(db_session, worker.id, "worker", totp_material(), TTL)

        assert request.status == DeletionStatus.PENDING.value
        assert request.attempt_count == 0
        assert len(request.token) >= 40
        assert request.expires_at - request.created_at == TTL

    @pytest.mark.asyncio
    async def test_reissue_supersedes_previous_token(self, db_session, store, worker):
        first = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        second = await store.create(db_session, worker.id, "worker", totp_material(), TTL)

        old = await store.get(db_session, first.token)
        assert old.status == DeletionStatus.INVALIDATED.value
        assert old.invalidated_reason == InvalidationReason.SUPERSEDED.value
        assert second.token != first.token
        assert await count_pending(db_session, worker.id) == 1

        live = await store.get_live_for_account(db_session, worker.id)
        assert live.token == second.token

    @pytest.mark.asyncio
    async def test_storage_rejects_second_pending_row(self, db_session, worker):
        now = utcnow()
        for token in ("token-one", "token-two"):
            db_session.add(
                DeletionRequest(
                    token=token,
                    account_id=worker.id,
                    account_type="worker",
                    method="totp",
                    status=DeletionStatus.PENDING.value,
                    expires_at=now + TTL,
                )
            )

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_decoys_do_not_supersede_each_other(self, db_session, store, worker):
        live = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        first = await store.create(db_session, None, "worker", totp_material(), TTL)
        second = await store.create(db_session, None, "worker", totp_material(), TTL)

        for request in (live, first, second):
            assert (await store.get(db_session, request.token)).status == DeletionStatus.PENDING.value
        assert first.is_decoy and second.is_decoy
        assert not live.is_decoy

    @pytest.mark.asyncio
    async def test_unknown_token_is_none(self, db_session, store):
        assert await store.get(db_session, "nope") is None


class TestConsume:
    @pytest.mark.asyncio
    async def test_consumes_exactly_once(self, db_session, store, worker):
        request = await store.create(db_session, worker.id, "worker", totp_material(), TTL)

        assert await store.consume(db_session, request.token, HOLD) is True
        assert await store.consume(db_session, request.token, HOLD) is False

        consumed = await store.get(db_session, request.token)
        assert consumed.status == DeletionStatus.CONSUMED.value
        assert consumed.consumed_at is not None
        assert consumed.deletion_due_at - consumed.consumed_at == HOLD

    @pytest.mark.asyncio
    async def test_overdue_request_cannot_be_consumed(self, db_session, store, worker):
        request = await store.create(
            db_session, worker.id, "worker", totp_material(), timedelta(seconds=-1)
        )

        assert await store.consume(db_session, request.token, HOLD) is False

    @pytest.mark.asyncio
    async def test_superseded_request_cannot_be_consumed(self, db_session, store, worker):
        first = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        await store.create(db_session, worker.id, "worker", totp_material(), TTL)

        assert await store.consume(db_session, first.token, HOLD) is False


class TestFailedAttempts:
    @pytest.mark.asyncio
    async def test_counts_then_locks(self, db_session, store, worker):
        request = await store.create(db_session, worker.id, "worker", totp_material(), TTL)

        outcomes = [await store.record_failed_attempt(db_session, request.token, 3) for _ in range(3)]

        assert [o.attempt_count for o in outcomes] == [1, 2, 3]
        assert [o.locked for o in outcomes] == [False, False, True]

        locked = await store.get(db_session, request.token)
        assert locked.status == DeletionStatus.INVALIDATED.value
        assert locked.invalidated_reason == InvalidationReason.LOCKED.value

    @pytest.mark.asyncio
    async def test_no_count_once_terminal(self, db_session, store, worker):
        request = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        await store.consume(db_session, request.token, HOLD)

        assert await store.record_failed_attempt(db_session, request.token, 5) is None
        assert (await store.get(db_session, request.token)).attempt_count == 0

    @pytest.mark.asyncio
    async def test_no_count_once_overdue(self, db_session, store, worker):
        request = await store.create(
            db_session, worker.id, "worker", totp_material(), timedelta(seconds=-1)
        )

        assert await store.record_failed_attempt(db_session, request.token, 5) is None
        overdue = await store.get(db_session, request.token)
        assert overdue.attempt_count == 0
        assert overdue.status == DeletionStatus.PENDING.value


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_sweep_expires_overdue_pending(self, db_session, store, worker, property_manager):
        overdue = await store.create(
            db_session, worker.id, "worker", totp_material(), timedelta(seconds=-1)
        )
        live = await store.create(db_session, property_manager.id, "propertyManager", totp_material(), TTL)

        assert await store.sweep_expired(db_session) == 1
        assert (await store.get(db_session, overdue.token)).status == DeletionStatus.EXPIRED.value
        assert (await store.get(db_session, live.token)).status == DeletionStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_purge_keeps_consumed_until_handed_off(self, db_session, store, worker, property_manager):
        superseded = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        consumed = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        await store.consume(db_session, consumed.token, HOLD)
        pending = await store.create(db_session, property_manager.id, "propertyManager", totp_material(), TTL)

        later = utcnow() + timedelta(days=31)
        assert await store.purge_terminal(db_session, timedelta(days=30), now=later) == 1
        assert await store.get(db_session, superseded.token) is None
        assert await store.get(db_session, consumed.token) is not None
        assert await store.get(db_session, pending.token) is not None

        await store.mark_handed_off(db_session, consumed.id)
        assert await store.purge_terminal(db_session, timedelta(days=30), now=later) == 1
        assert await store.get(db_session, consumed.token) is None

    @pytest.mark.asyncio
    async def test_list_unhanded(self, db_session, store, worker):
        request = await store.create(db_session, worker.id, "worker", totp_material(), TTL)
        await store.consume(db_session, request.token, HOLD)

        assert await store.list_unhanded(db_session, timedelta(minutes=10)) == []

        stale = await store.list_unhanded(db_session, timedelta(seconds=-1))
        assert [r.id for r in stale] == [request.id]

        await store.mark_handed_off(db_session, request.id)
        assert await store.list_unhanded(db_session, timedelta(seconds=-1)) == []
