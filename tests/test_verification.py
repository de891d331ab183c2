"""Tests for proof shape and proof checking."""

import time
from datetime import timedelta

import pyotp
import pytest

from app.models import Account, DeletionRequest
from app.services.deletion.challenge_issuer import hash_code
from app.services.deletion.errors import InvalidProof, MethodMismatch
from app.services.deletion.verification import DeletionProof, VerificationEvaluator
from app.utils.time_utils import utcnow
from tests.helpers import wrong_totp

EMAIL_CODE = "123456"
SMS_CODE = "654321"


@pytest.fixture
def evaluator():
    return VerificationEvaluator(totp_valid_window=1)


@pytest.fixture
def secret():
    return pyotp.random_base32()


def dual_code_request(minutes_left: int = 5) -> DeletionRequest:
    expires = utcnow() + timedelta(minutes=minutes_left)
    return DeletionRequest(
        method="dualCode",
        email_code_hash=hash_code(EMAIL_CODE),
        email_code_expires_at=expires,
        sms_code_hash=hash_code(SMS_CODE),
        sms_code_expires_at=expires,
    )


class TestProofShape:
    def test_totp_only(self):
        assert DeletionProof(totp_code="123456").method.value == "totp"

    def test_both_codes(self):
        assert DeletionProof(email_code="1", sms_code="2").method.value == "dualCode"

    def test_mixed_or_partial_shapes_have_no_method(self):
        assert DeletionProof(totp_code="1", email_code="2", sms_code="3").method is None
        assert DeletionProof(email_code="1").method is None
        assert DeletionProof().method is None

    def test_codes_hidden_from_repr(self):
        assert "123456" not in repr(DeletionProof(totp_code="123456"))


class TestEnsureMethod:
    def test_matching_shape_passes(self, evaluator):
        evaluator.ensure_method(dual_code_request(), DeletionProof(email_code="1", sms_code="2"))

    def test_totp_against_dual_code_request(self, evaluator):
        with pytest.raises(MethodMismatch):
            evaluator.ensure_method(dual_code_request(), DeletionProof(totp_code="123456"))

    def test_partial_proof(self, evaluator):
        with pytest.raises(MethodMismatch):
            evaluator.ensure_method(dual_code_request(), DeletionProof(email_code=EMAIL_CODE))


class TestDualCode:
    def test_both_codes_correct(self, evaluator):
        evaluator.check(dual_code_request(), None, DeletionProof(email_code=EMAIL_CODE, sms_code=SMS_CODE))

    def test_codes_are_trimmed(self, evaluator):
        proof = DeletionProof(email_code=f" {EMAIL_CODE} ", sms_code=f"{SMS_CODE}\n")
        evaluator.check(dual_code_request(), None, proof)

    @pytest.mark.parametrize(
        "email_code,sms_code",
        [
            (EMAIL_CODE, "000000"),
            ("000000", SMS_CODE),
            (SMS_CODE, EMAIL_CODE),
        ],
    )
    def test_one_wrong_code_fails(self, evaluator, email_code, sms_code):
        with pytest.raises(InvalidProof) as exc_info:
            evaluator.check(dual_code_request(), None, DeletionProof(email_code=email_code, sms_code=sms_code))
        assert "email" not in exc_info.value.message.lower()
        assert "sms" not in exc_info.value.message.lower()

    def test_expired_codes_fail(self, evaluator):
        request = dual_code_request(minutes_left=-1)
        with pytest.raises(InvalidProof):
            evaluator.check(request, None, DeletionProof(email_code=EMAIL_CODE, sms_code=SMS_CODE))


class TestTotp:
    def test_current_code(self, evaluator, secret):
        account = Account(totp_secret=secret)
        request = DeletionRequest(method="totp")

        evaluator.check(request, account, DeletionProof(totp_code=pyotp.TOTP(secret).now()))

    def test_previous_step_within_window(self, evaluator, secret):
        account = Account(totp_secret=secret)
        request = DeletionRequest(method="totp")
        previous = pyotp.TOTP(secret).at(int(time.time()) - 30)

        evaluator.check(request, account, DeletionProof(totp_code=previous))

    def test_wrong_code(self, evaluator, secret):
        account = Account(totp_secret=secret)
        request = DeletionRequest(method="totp")

        with pytest.raises(InvalidProof):
            evaluator.check(request, account, DeletionProof(totp_code=wrong_totp(secret)))

    def test_account_without_secret(self, evaluator):
        with pytest.raises(InvalidProof):
            evaluator.check(DeletionRequest(method="totp"), Account(), DeletionProof(totp_code="123456"))


class TestDecoy:
    def test_totp_decoy_never_validates(self, evaluator):
        with pytest.raises(InvalidProof):
            evaluator.check(DeletionRequest(method="totp"), None, DeletionProof(totp_code="123456"))

    def test_dual_code_decoy_never_validates(self, evaluator):
        with pytest.raises(InvalidProof):
            evaluator.check(
                DeletionRequest(method="dualCode"), None, DeletionProof(email_code=EMAIL_CODE, sms_code=SMS_CODE)
            )
