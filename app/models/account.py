"""Account model for workers and property managers"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from app.db.database import Base
from app.utils.time_utils import utcnow


class AccountType(str, PyEnum):
    WORKER = "worker"
    PROPERTY_MANAGER = "propertyManager"


class Account(Base):
    """An account that can request its own deletion.

    Registration and TOTP enrollment happen elsewhere; this service only
    reads the email, phone number and enrolled TOTP secret.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("account_type", "email", name="uq_accounts_type_email"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_type = Column(String(32), nullable=False, index=True)
    email = Column(String(320), nullable=False, index=True)  # stored lower-cased
    phone_number = Column(String(32), nullable=True)  # E.164
    totp_secret = Column(String(64), nullable=True)  # base32
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    deletion_requests = relationship(
        "DeletionRequest", back_populates="account", cascade="all, delete-orphan"
    )

    @property
    def has_totp(self) -> bool:
        return bool(self.totp_secret)

    @property
    def has_phone(self) -> bool:
        return bool(self.phone_number)

    def __repr__(self):
        return f"<Account(id={self.id}, type='{self.account_type}')>"
