"""Helpers shared by the deletion tests."""

import time

import pyotp

WORKER_EMAIL = "a@b.com"
WORKER_PHONE = "+15555550100"
MANAGER_EMAIL = "pm@b.com"


def sent_codes(email_service, sms_service) -> tuple[str, str]:
    """Plaintext (email, sms) codes from the most recent dispatch."""
    email_code = email_service.send_deletion_code_email.call_args.args[1]
    sms_code = sms_service.send_deletion_code_sms.call_args.args[1]
    return email_code, sms_code


def wrong_code(code: str) -> str:
    """A code of the same length that differs from ``code`` in every digit."""
    return "".join(str((int(digit) + 1) % 10) for digit in code)


def wrong_totp(secret: str) -> str:
    """A six-digit code outside every window the verifier could accept."""
    totp = pyotp.TOTP(secret)
    now = int(time.time())
    accepted = {totp.at(now + offset) for offset in range(-90, 91, 30)}
    candidate = 0
    while f"{candidate:06d}" in accepted:
        candidate += 1
    return f"{candidate:06d}"
