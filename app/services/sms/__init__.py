"""SMS service package."""

from app.services.sms.sms_service import SMSService, get_sms_service

__all__ = ["SMSService", "get_sms_service"]
