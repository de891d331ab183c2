"""Produces and delivers the verification challenge for a deletion request."""

import hashlib
import secrets
from dataclasses import dataclass, field

from app.config import Settings, settings
from app.models.account import Account
from app.models.deletion_request import VerificationMethod
from app.services.deletion.token_store import ChallengeMaterial
from app.services.email import EmailService, get_email_service
from app.services.sms import SMSService, get_sms_service
from app.utils.logger import get_logger
from app.utils.time_utils import minutes_from_now, utcnow

logger = get_logger(__name__)

DIGITS = "0123456789"


def generate_verification_code(length: int) -> str:
    """Uniformly random numeric code from the OS CSPRNG."""
    return "".join(secrets.choice(DIGITS) for _ in range(length))


def hash_code(code: str) -> str:
    return hashlib.sha256(code.strip().encode()).hexdigest()


@dataclass
class IssuedChallenge:
    """Challenge material plus the plaintext deliveries.

    ``material`` is what gets stored. Addresses and plaintext codes stay
    in-process and go to the channels once the request is committed.
    """

    material: ChallengeMaterial
    email_to: str | None = None
    email_code: str | None = field(default=None, repr=False)
    sms_to: str | None = None
    sms_code: str | None = field(default=None, repr=False)

    @property
    def method(self) -> str:
        return self.material.method

    @property
    def needs_dispatch(self) -> bool:
        return self.material.method == VerificationMethod.DUAL_CODE.value


class ChallengeIssuer:
    """Selects the verification method for an account and delivers codes.

    Dual-code challenges use two independently generated codes sent over
    separate channels (email and SMS); a confirmation needs both.
    """

    def __init__(
        self,
        config: Settings = settings,
        email_service: EmailService | None = None,
        sms_service: SMSService | None = None,
    ):
        self.config = config
        self._email_service = email_service
        self._sms_service = sms_service

    @property
    def email_service(self) -> EmailService:
        if self._email_service is None:
            self._email_service = get_email_service()
        return self._email_service

    @property
    def sms_service(self) -> SMSService:
        if self._sms_service is None:
            self._sms_service = get_sms_service()
        return self._sms_service

    def select_method(self, account: Account) -> VerificationMethod | None:
        """Pick the method by account policy; None when nothing is usable."""
        prefers_totp = account.account_type in self.config.deletion_totp_account_types
        if account.has_totp and prefers_totp:
            return VerificationMethod.TOTP
        if account.has_phone:
            return VerificationMethod.DUAL_CODE
        if account.has_totp:
            return VerificationMethod.TOTP
        return None

    def issue(self, account: Account, method: VerificationMethod) -> IssuedChallenge:
        if method == VerificationMethod.TOTP:
            return IssuedChallenge(material=ChallengeMaterial(method=method.value))

        now = utcnow()
        ttl = self.config.deletion_code_ttl_minutes
        length = self.config.deletion_code_length
        email_code = generate_verification_code(length)
        sms_code = generate_verification_code(length)

        return IssuedChallenge(
            material=ChallengeMaterial(
                method=method.value,
                email_code_hash=hash_code(email_code),
                email_code_expires_at=minutes_from_now(ttl, now),
                sms_code_hash=hash_code(sms_code),
                sms_code_expires_at=minutes_from_now(ttl, now),
            ),
            email_to=account.email,
            email_code=email_code,
            sms_to=account.phone_number,
            sms_code=sms_code,
        )

    def decoy(self, account_type: str) -> ChallengeMaterial:
        """Material for an initiation that found no usable account.

        The method follows the account type's usual policy so a decoy asks
        for the same proof shape as a real request. Nothing is delivered.
        """
        if account_type in self.config.deletion_totp_account_types:
            return ChallengeMaterial(method=VerificationMethod.TOTP.value)
        return ChallengeMaterial(method=VerificationMethod.DUAL_CODE.value)

    async def dispatch(self, challenge: IssuedChallenge) -> None:
        """Deliver both codes. Each channel failure is logged independently."""
        if not challenge.needs_dispatch:
            return

        ttl = self.config.deletion_code_ttl_minutes
        org = self.config.organization_name

        email_sent = await self.email_service.send_deletion_code_email(
            challenge.email_to, challenge.email_code, ttl, org
        )
        if not email_sent:
            logger.error(f"Deletion email code was not delivered to {challenge.email_to}")

        sms_sent = await self.sms_service.send_deletion_code_sms(
            challenge.sms_to, challenge.sms_code, ttl, org
        )
        if not sms_sent:
            logger.error(f"Deletion SMS code was not delivered to {challenge.sms_to}")

        if email_sent and sms_sent:
            logger.info(f"Dispatched deletion codes to {challenge.email_to} and {challenge.sms_to}")


challenge_issuer = ChallengeIssuer()
