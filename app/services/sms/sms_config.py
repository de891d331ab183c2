"""SMS channel configuration."""

from pydantic_settings import BaseSettings


class TwilioSettings(BaseSettings):
    """Twilio configuration."""

    ACCOUNT_SID: str = ""
    AUTH_TOKEN: str = ""
    FROM_PHONE: str = ""

    class Config:
        env_prefix = "TWILIO_"
        extra = "ignore"

    @property
    def is_configured(self) -> bool:
        return bool(self.ACCOUNT_SID and self.AUTH_TOKEN and self.FROM_PHONE)


twilio_settings = TwilioSettings()
