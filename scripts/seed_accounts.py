#!/usr/bin/env python3
"""
Seed Accounts Script

Create local test accounts for the deletion flow. Workers get a phone
number (dual-code verification); property managers get a TOTP secret and
the provisioning URI is printed so it can be added to an authenticator app.

Usage:
    uv run python scripts/seed_accounts.py worker a@b.com --phone +15555550100
    uv run python scripts/seed_accounts.py propertyManager pm@b.com --totp
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment from .env file
from dotenv import load_dotenv

env_file = os.getenv("ENV", "local")
load_dotenv(f".env.{env_file}")

import pyotp
from sqlalchemy import select

from app.config import settings
from app.db import async_engine, get_db_session
from app.models import Account, AccountType


async def seed(account_type: str, email: str, phone: str | None, with_totp: bool) -> None:
    email = email.strip().lower()
    async with get_db_session() as db:
        result = await db.execute(
            select(Account).where(Account.account_type == account_type, Account.email == email)
        )
        account = result.scalar_one_or_none()
        if account is None:
            account = Account(account_type=account_type, email=email)
            db.add(account)

        if phone:
            account.phone_number = phone
        if with_totp and not account.totp_secret:
            account.totp_secret = pyotp.random_base32()
        await db.flush()

        print(f"Account {account.id} ({account_type}, {email})")
        print(f"  phone: {account.phone_number or '-'}")
        if account.totp_secret:
            uri = pyotp.TOTP(account.totp_secret).provisioning_uri(
                name=email, issuer_name=settings.organization_name
            )
            print(f"  totp:  {uri}")

    await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed local accounts")
    parser.add_argument("account_type", choices=[t.value for t in AccountType])
    parser.add_argument("email")
    parser.add_argument("--phone", help="E.164 phone number")
    parser.add_argument("--totp", action="store_true", help="Enroll a TOTP secret")
    args = parser.parse_args()

    asyncio.run(seed(args.account_type, args.email, args.phone, args.totp))
