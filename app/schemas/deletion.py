"""Account deletion request/response schemas.

Bodies are camelCase on the wire; snake_case names are accepted as well.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.client.session_bridge import is_valid_email
from app.services.deletion.verification import DeletionProof


class InitiateDeletionRequest(BaseModel):
    """Step one: the account email"""
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Invalid email format")
        return value.strip()


class InitiateDeletionResponse(BaseModel):
    """Identical shape whether or not the account exists"""
    pending_token: str = Field(..., alias="pendingToken")
    account_type: str = Field(..., alias="accountType")
    message: str
    redirect_url: str = Field(..., alias="redirectUrl")

    class Config:
        populate_by_name = True


def verification_code_field(alias: str):
    return Field(None, alias=alias, min_length=4, max_length=12, pattern=r"^\s*\d+\s*$")


class ConfirmDeletionRequest(BaseModel):
    """Step two: the pending token plus a TOTP code or the email/SMS code pair"""
    pending_token: str = Field(..., alias="pendingToken", min_length=1, max_length=128)
    totp_code: Optional[str] = verification_code_field("totpCode")
    email_code: Optional[str] = verification_code_field("emailCode")
    sms_code: Optional[str] = verification_code_field("smsCode")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_proof_shape(self) -> "ConfirmDeletionRequest":
        has_totp = self.totp_code is not None
        has_email = self.email_code is not None
        has_sms = self.sms_code is not None
        if has_totp and (has_email or has_sms):
            raise ValueError("Provide either a TOTP code or the email and SMS codes, not both")
        if not has_totp and not (has_email and has_sms):
            raise ValueError("Missing verification codes")
        return self

    def to_proof(self) -> DeletionProof:
        return DeletionProof(
            totp_code=self.totp_code,
            email_code=self.email_code,
            sms_code=self.sms_code,
        )


class ConfirmDeletionResponse(BaseModel):
    message: str
