"""DeletionRequest model backing the two-step account deletion flow"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from app.db.database import Base
from app.utils.time_utils import utcnow


class DeletionStatus(str, PyEnum):
    PENDING = "pending"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    INVALIDATED = "invalidated"


TERMINAL_STATUSES = frozenset(
    {DeletionStatus.CONSUMED.value, DeletionStatus.EXPIRED.value, DeletionStatus.INVALIDATED.value}
)


class VerificationMethod(str, PyEnum):
    TOTP = "totp"
    DUAL_CODE = "dualCode"


class InvalidationReason(str, PyEnum):
    SUPERSEDED = "superseded"
    LOCKED = "locked"


class DeletionRequest(Base):
    """A pending-token record authorizing one account deletion.

    Only one row per account may be pending at a time; the partial unique
    index below enforces it at the storage layer.

    Rows without an account are decoys, issued when an initiation matched
    no usable account. They count attempts and expire like any other row
    but can never be consumed.
    """

    __tablename__ = "deletion_requests"
    __table_args__ = (
        Index(
            "uq_deletion_requests_live_account",
            "account_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    token = Column(String(128), unique=True, nullable=False, index=True)
    account_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    account_type = Column(String(32), nullable=False)
    method = Column(String(16), nullable=False)

    # Dual-code challenge material, hashed
    email_code_hash = Column(String(64), nullable=True)
    email_code_expires_at = Column(DateTime, nullable=True)
    sms_code_hash = Column(String(64), nullable=True)
    sms_code_expires_at = Column(DateTime, nullable=True)

    status = Column(
        String(16), default=DeletionStatus.PENDING.value, nullable=False, index=True
    )
    invalidated_reason = Column(String(16), nullable=True)
    attempt_count = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    consumed_at = Column(DateTime, nullable=True)
    deletion_due_at = Column(DateTime, nullable=True)
    handed_off_at = Column(DateTime, nullable=True)

    account = relationship("Account", back_populates="deletion_requests")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_decoy(self) -> bool:
        return self.account_id is None

    def __repr__(self):
        return (
            f"<DeletionRequest(id={self.id}, token={self.token[:6]}..., "
            f"status='{self.status}', method='{self.method}')>"
        )
