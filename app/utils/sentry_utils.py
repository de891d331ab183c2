"""Sentry error tracking utilities."""

import functools
import os
from typing import Any, Callable, TypeVar

from app.utils.environment import is_debug, get_environment

F = TypeVar("F", bound=Callable[..., Any])

_sentry_initialized = False


def configure_sentry(dsn_env_var: str = "SENTRY_DSN") -> bool:
    """Initialize Sentry for error tracking.

    Only initializes outside local/test environments and when the DSN
    environment variable is set.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    if is_debug():
        return False

    dsn = os.getenv(dsn_env_var)
    if not dsn:
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=get_environment(),
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2")),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        # Request bodies carry pending tokens and codes
        send_default_pii=False,
    )

    _sentry_initialized = True
    return True


def capture_exception(exception: BaseException) -> None:
    """Send an exception to Sentry when it is configured."""
    if not _sentry_initialized:
        return

    import sentry_sdk

    sentry_sdk.capture_exception(exception)


def wrap_with_sentry(func: F) -> F:
    """Decorator capturing exceptions raised by an async background callable.

    The exception is re-raised after capture.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            capture_exception(e)
            raise

    return wrapper  # type: ignore
