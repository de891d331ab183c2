"""Email service for verification codes and internal notifications."""

from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import boto3
from aiosmtplib import SMTP
from botocore.exceptions import ClientError

from app.services.email.email_config import (
    EmailProvider,
    email_settings,
    ses_settings,
    smtp_settings,
)
from app.utils.logger import get_logger
from app.utils.time_utils import utcnow

logger = get_logger(__name__)


@dataclass
class DeletionNotificationData:
    """Data for the internal "verified deletion request" email."""

    account_type: str
    account_email: str
    request_id: str
    verified_at: datetime
    deletion_due_at: datetime


_LAYOUT_HTML = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #111827; color: white; padding: 24px; text-align: center; border-radius: 8px 8px 0 0; }}
        .content {{ background: #f9f9f9; padding: 24px; border-radius: 0 0 8px 8px; }}
        .code {{ font-size: 28px; letter-spacing: 6px; font-weight: bold; text-align: center; margin: 24px 0; }}
        .footer {{ margin-top: 24px; color: #666; font-size: 12px; text-align: center; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{title}</h1></div>
        <div class="content">
            {body}
            <div class="footer">&copy; {year} {organization}</div>
        </div>
    </div>
</body>
</html>
"""


class EmailService:
    """Email service supporting both SMTP and AWS SES."""

    def __init__(self, provider: EmailProvider):
        """
        Initialize email service with specified provider.

        Args:
            provider: Email provider to use
        """
        self.provider = provider
        self._ses_client = None

        if self.provider == EmailProvider.AWS_SES:
            self._ses_client = boto3.client(
                "ses",
                region_name=ses_settings.AWS_REGION,
                aws_access_key_id=ses_settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=ses_settings.AWS_SECRET_ACCESS_KEY or None,
            )

    @staticmethod
    def render(title: str, body_html: str, organization: str) -> str:
        return _LAYOUT_HTML.format(
            title=title,
            body=body_html,
            year=utcnow().year,
            organization=organization,
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        plain_content: str,
        html_content: str,
    ) -> bool:
        """Send a multipart email using the configured provider.

        Returns:
            True if the provider accepted the message, False otherwise
        """
        if self.provider == EmailProvider.AWS_SES:
            return await self._send_email_ses(to_email, subject, plain_content, html_content)
        return await self._send_email_smtp(to_email, subject, plain_content, html_content)

    async def _send_email_smtp(
        self,
        to_email: str,
        subject: str,
        plain_content: str,
        html_content: str,
    ) -> bool:
        """Send email via SMTP."""
        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = formataddr(
                (email_settings.SEND_FROM_NAME, smtp_settings.SMTP_USER)
            )
            message["To"] = to_email
            message.attach(MIMEText(plain_content, "plain", "utf-8"))
            message.attach(MIMEText(html_content, "html", "utf-8"))

            async with SMTP(
                hostname=smtp_settings.SMTP_HOST,
                port=smtp_settings.SMTP_PORT,
                use_tls=True,
            ) as smtp:
                await smtp.login(smtp_settings.SMTP_USER, smtp_settings.SMTP_PASSWORD)
                await smtp.send_message(message)

            logger.info(f"SMTP email '{subject}' sent to {to_email}")
            return True

        except Exception as e:
            logger.error(f"SMTP error sending '{subject}' to {to_email}: {e}")
            return False

    async def _send_email_ses(
        self,
        to_email: str,
        subject: str,
        plain_content: str,
        html_content: str,
    ) -> bool:
        """Send email via AWS SES."""
        try:
            response = self._ses_client.send_email(
                Source=f"{email_settings.SEND_FROM_NAME} <{ses_settings.SES_FROM_EMAIL}>",
                Destination={"ToAddresses": [to_email]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": plain_content, "Charset": "UTF-8"},
                        "Html": {"Data": html_content, "Charset": "UTF-8"},
                    },
                },
            )

            logger.info(f"SES email '{subject}' sent to {to_email}, MessageId: {response['MessageId']}")
            return True

        except ClientError as e:
            logger.error(f"SES error sending '{subject}' to {to_email}: {e.response['Error']['Message']}")
            return False
        except Exception as e:
            logger.error(f"Error sending '{subject}' to {to_email}: {e}")
            return False

    async def send_deletion_code_email(
        self,
        to_email: str,
        code: str,
        expires_in_minutes: int,
        organization: str,
    ) -> bool:
        """
        Send the email half of a dual-code deletion challenge.

        Args:
            to_email: Account email address
            code: Plaintext one-time code
            expires_in_minutes: Code lifetime shown to the user
            organization: Sender branding

        Returns:
            True if email sent successfully, False otherwise
        """
        subject = f"{organization} - Account Deletion Verification Code"
        plain = (
            f"Your account deletion verification code is {code}. "
            f"It expires in {expires_in_minutes} minutes. "
            "If you did not request account deletion, you can ignore this email."
        )
        html = self.render(
            "Verification Code",
            (
                "<p>Use the following code to confirm your account deletion request. "
                f"This code will expire in {expires_in_minutes} minutes.</p>"
                f'<div class="code">{code}</div>'
                "<p>If you did not request account deletion, you can ignore this email.</p>"
            ),
            organization,
        )
        return await self.send_email(to_email, subject, plain, html)

    async def send_deletion_request_notification(
        self,
        to_email: str,
        data: DeletionNotificationData,
        organization: str,
    ) -> bool:
        """Tell the operations mailbox that a verified deletion is queued."""
        subject = f"URGENT: Account Deletion Request for {data.account_email}"
        verified = data.verified_at.strftime("%a, %d %b %Y %H:%M:%S UTC")
        due = data.deletion_due_at.strftime("%Y-%m-%d")
        plain = (
            f"A verified deletion request was received for {data.account_email} "
            f"(account type: {data.account_type}, request: {data.request_id}) at {verified}. "
            f"Complete the deletion by {due}."
        )
        html = self.render(
            "Account Deletion Request",
            (
                "<p>A new account deletion request has been verified. "
                "Please process this request promptly.</p><ul>"
                f"<li><strong>Account Type:</strong> {data.account_type}</li>"
                f"<li><strong>Email:</strong> {data.account_email}</li>"
                f"<li><strong>Request ID:</strong> {data.request_id}</li>"
                f"<li><strong>Verified (UTC):</strong> {verified}</li>"
                f"<li><strong>Complete By:</strong> {due}</li></ul>"
            ),
            organization,
        )
        return await self.send_email(to_email, subject, plain, html)


# Singleton cache per provider
_email_service_cache: dict[EmailProvider, EmailService] = {}


def get_email_service(provider: EmailProvider | None = None) -> EmailService:
    """
    Get or create EmailService instance (singleton per provider).

    Args:
        provider: Email provider to use; defaults to EMAIL_PROVIDER

    Returns:
        Cached EmailService instance for the provider
    """
    provider = provider or email_settings.PROVIDER
    if provider not in _email_service_cache:
        _email_service_cache[provider] = EmailService(provider)

    return _email_service_cache[provider]
