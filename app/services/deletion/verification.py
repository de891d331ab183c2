"""Checks a submitted proof against a deletion request's challenge."""

import hmac
from dataclasses import dataclass, field
from datetime import datetime

import pyotp

from app.models.account import Account
from app.models.deletion_request import DeletionRequest, VerificationMethod
from app.services.deletion.challenge_issuer import hash_code
from app.services.deletion.errors import InvalidProof, MethodMismatch
from app.utils.time_utils import is_past, utcnow


@dataclass(frozen=True)
class DeletionProof:
    """Either a TOTP code or an email/SMS code pair."""

    totp_code: str | None = field(default=None, repr=False)
    email_code: str | None = field(default=None, repr=False)
    sms_code: str | None = field(default=None, repr=False)

    @property
    def method(self) -> VerificationMethod | None:
        has_totp = bool(self.totp_code)
        has_pair = bool(self.email_code) and bool(self.sms_code)
        if has_totp and not (self.email_code or self.sms_code):
            return VerificationMethod.TOTP
        if has_pair and not has_totp:
            return VerificationMethod.DUAL_CODE
        return None


def _codes_equal(submitted: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_code(submitted), stored_hash)


class VerificationEvaluator:
    def __init__(self, totp_valid_window: int = 1):
        self.totp_valid_window = totp_valid_window

    def ensure_method(self, request: DeletionRequest, proof: DeletionProof) -> None:
        """Reject a proof shaped for the other method.

        Raises:
            MethodMismatch: the proof does not fit the request's method
        """
        if proof.method is None or proof.method.value != request.method:
            raise MethodMismatch("This verification method does not match the deletion request.")

    def check(
        self,
        request: DeletionRequest,
        account: Account | None,
        proof: DeletionProof,
        now: datetime | None = None,
    ) -> None:
        """Validate ``proof``; returns silently on success.

        Decoy requests never validate: they have no account to hold a TOTP
        secret and no stored code hashes.

        Raises:
            InvalidProof: wrong code(s) or an expired sub-code
        """
        now = now or utcnow()
        if request.method == VerificationMethod.TOTP.value:
            if not self._check_totp(account, proof.totp_code):
                raise InvalidProof()
            return

        # Evaluate both codes before deciding so the outcome never depends
        # on which one was wrong.
        email_ok = _codes_equal(proof.email_code, request.email_code_hash)
        sms_ok = _codes_equal(proof.sms_code, request.sms_code_hash)
        email_live = not is_past(request.email_code_expires_at, now)
        sms_live = not is_past(request.sms_code_expires_at, now)
        if not (email_ok and sms_ok and email_live and sms_live):
            raise InvalidProof()

    def _check_totp(self, account: Account | None, code: str | None) -> bool:
        if account is None or not account.totp_secret or not code:
            return False
        totp = pyotp.TOTP(account.totp_secret)
        return totp.verify(code.strip(), valid_window=self.totp_valid_window)
