"""Email channel configuration."""

from enum import Enum

from pydantic_settings import BaseSettings


class EmailProvider(str, Enum):
    """Email provider options."""

    SMTP = "smtp"
    AWS_SES = "aws_ses"


class EmailSettings(BaseSettings):
    """Which provider carries outgoing mail."""

    PROVIDER: EmailProvider = EmailProvider.SMTP
    SEND_FROM_NAME: str = "Poof"

    class Config:
        env_prefix = "EMAIL_"
        extra = "ignore"


class SMTPSettings(BaseSettings):
    """SMTP configuration."""

    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: str = "no-reply@thepoofapp.com"
    SMTP_PASSWORD: str = ""

    class Config:
        env_prefix = "EMAIL_"
        extra = "ignore"


class SESSettings(BaseSettings):
    """AWS SES configuration."""

    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    SES_FROM_EMAIL: str = "no-reply@thepoofapp.com"

    class Config:
        env_prefix = "EMAIL_"
        extra = "ignore"


email_settings = EmailSettings()
smtp_settings = SMTPSettings()
ses_settings = SESSettings()
