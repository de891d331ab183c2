"""
Environment configuration for Alembic migrations.
Loads the .env file for the current ENV and builds the sync database URL.
"""

import os

from dotenv import load_dotenv

env = os.getenv("ENV", "local")
dotenv_file = f".env.{env}"
load_dotenv(dotenv_file)


def get_database_url() -> str:
    """
    Get the sync (psycopg2) database URL for the current environment.

    Imported after the .env file is loaded so Settings sees its values.
    """
    from app.config import Settings

    return Settings().database_url
