"""Utility modules for the account deletion service."""

from app.utils.logger import logger, setup_logger, get_logger
from app.utils.environment import is_production, is_debug, get_environment
from app.utils.sentry_utils import configure_sentry, capture_exception, wrap_with_sentry
from app.utils.response_utils import error_response, validation_error, internal_error
from app.utils.time_utils import utcnow
from app.utils.constants import API_VERSION, API_PREFIX

__all__ = [
    # Logger
    "logger",
    "setup_logger",
    "get_logger",
    # Environment
    "is_production",
    "is_debug",
    "get_environment",
    # Sentry
    "configure_sentry",
    "capture_exception",
    "wrap_with_sentry",
    # Response
    "error_response",
    "validation_error",
    "internal_error",
    # Time
    "utcnow",
    # Constants
    "API_VERSION",
    "API_PREFIX",
]
