"""DeletionInitiationAttempt model for initiation rate limiting"""

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.types import Uuid

from app.db.database import Base
from app.utils.time_utils import utcnow


class DeletionInitiationAttempt(Base):
    """One row per initiate call, recorded whether or not the account exists"""

    __tablename__ = "deletion_initiation_attempts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email_hash = Column(String(64), nullable=False, index=True)  # SHA256 hash of email
    client_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<DeletionInitiationAttempt(email_hash={self.email_hash[:8]}..., client_id='{self.client_id}')>"
