"""Environment detection utilities."""

import os


def get_environment() -> str:
    """Get the current environment name.

    Returns:
        Environment name: 'local', 'test', 'staging', or 'production'
    """
    return os.getenv("ENV", "local")


def is_production() -> bool:
    return get_environment() == "production"


def is_debug() -> bool:
    """Check if running in a developer environment.

    Returns:
        True if ENV is 'local', 'test' or not set
    """
    return get_environment() in ("local", "test")
