"""SMS service backed by Twilio."""

import asyncio
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from app.services.sms.sms_config import TwilioSettings, twilio_settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SMSService:
    """Sends text messages through the Twilio REST API."""

    def __init__(self, config: TwilioSettings = twilio_settings):
        self.config = config
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.config.ACCOUNT_SID, self.config.AUTH_TOKEN)
        return self._client

    async def send_sms(self, to_phone: str, body: str) -> bool:
        """Send an SMS.

        The Twilio client is synchronous, so the call runs in a worker thread.

        Returns:
            True if Twilio accepted the message, False otherwise
        """
        if not self.config.is_configured:
            logger.warning(f"Twilio not configured, SMS to {to_phone} not sent")
            return False

        try:
            message = await asyncio.to_thread(
                self.client.messages.create,
                body=body,
                from_=self.config.FROM_PHONE,
                to=to_phone,
            )
            logger.info(f"SMS sent to {to_phone}, SID: {message.sid}")
            return True
        except TwilioRestException as e:
            logger.error(f"Twilio error sending SMS to {to_phone}: {e.msg}")
            return False
        except Exception as e:
            logger.error(f"Failed to send SMS to {to_phone}: {e}")
            return False

    async def send_deletion_code_sms(
        self,
        to_phone: str,
        code: str,
        expires_in_minutes: int,
        organization: str,
    ) -> bool:
        """Send the SMS half of a dual-code deletion challenge."""
        body = (
            f"Your {organization} account deletion code is {code}. "
            f"It expires in {expires_in_minutes} minutes."
        )
        return await self.send_sms(to_phone, body)


_sms_service: Optional[SMSService] = None


def get_sms_service() -> SMSService:
    """Get or create the shared SMSService."""
    global _sms_service
    if _sms_service is None:
        _sms_service = SMSService()
    return _sms_service
