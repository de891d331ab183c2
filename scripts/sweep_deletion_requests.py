#!/usr/bin/env python3
"""
Deletion Request Sweep Script

Run one housekeeping pass outside the API process: expire overdue pending
deletion requests, purge terminal rows past retention, drop stale
initiation attempts and re-drive hand-offs the deletion queue never
accepted.

Usage:
    # One pass against the local database
    uv run python scripts/sweep_deletion_requests.py

    # Against staging
    ENV=staging uv run python scripts/sweep_deletion_requests.py

    # Only list consumed requests still waiting for hand-off
    ENV=staging uv run python scripts/sweep_deletion_requests.py --list-unhanded
"""

import argparse
import asyncio
import os
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment from .env file
from dotenv import load_dotenv

env_file = os.getenv("ENV", "local")
load_dotenv(f".env.{env_file}")

from app.config import settings
from app.db import async_engine, get_db_session
from app.services.deletion import deletion_service
from app.services.deletion.dispatcher import dispatcher
from app.services.deletion.token_store import token_store


async def list_unhanded() -> None:
    async with get_db_session() as db:
        stale = await token_store.list_unhanded(
            db, timedelta(minutes=settings.deletion_handoff_grace_minutes), limit=500
        )

    if not stale:
        print("No consumed requests waiting for hand-off")
        return

    print(f"{'REQUEST':<38} {'ACCOUNT':<38} {'TYPE':<16} CONSUMED")
    for request in stale:
        print(
            f"{str(request.id):<38} {str(request.account_id):<38} "
            f"{request.account_type:<16} {request.consumed_at:%Y-%m-%d %H:%M}"
        )
    print(f"\n{len(stale)} request(s)")


async def sweep() -> None:
    async with get_db_session() as db:
        stats = await deletion_service.sweep(db)
    await dispatcher.drain(timeout=30)

    print(f"Expired:            {stats.expired}")
    print(f"Purged:             {stats.purged}")
    print(f"Attempts purged:    {stats.attempts_purged}")
    print(f"Hand-offs redriven: {stats.handoffs_redriven}")


async def main(args: argparse.Namespace) -> None:
    try:
        if args.list_unhanded:
            await list_unhanded()
        else:
            await sweep()
    finally:
        await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sweep deletion requests")
    parser.add_argument(
        "--list-unhanded",
        action="store_true",
        help="List consumed requests not yet accepted by the deletion queue",
    )
    asyncio.run(main(parser.parse_args()))
