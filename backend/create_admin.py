#!/usr/bin/env python3
"""
Create (or re-activate) an admin account.

Usage:
    python create_admin.py --email admin@example.com --name "Site Admin"
The password is read from --password or prompted for.
"""
import argparse
import asyncio
import getpass
import logging
import sys

from core.config import settings
from core.errors import AppError
from db.base import initialize_database
from services.auth_service import create_admin

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("create_admin")


async def run(email: str, password: str, full_name: str) -> int:
    if not settings.USE_MONGO:
        await initialize_database()
    try:
        admin = await create_admin(email, password, full_name)
    except AppError as e:
        logger.error(f"Could not create admin: {e.detail}")
        return 1
    logger.info(f"Admin ready: id={admin.admin_id} email={admin.email}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Create or re-activate an admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default=None, help="Full name shown in the admin console")
    parser.add_argument("--password", default=None)
    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    sys.exit(asyncio.run(run(args.email, password, args.name)))


if __name__ == "__main__":
    main()
