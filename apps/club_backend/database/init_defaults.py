#!/usr/bin/env python3
"""
Initialize default database values.
This script is run on startup to make sure the club has an admin account.
"""

import asyncio
import logging
import os

from club_backend.database.db import AsyncSessionLocal
from club_backend.services import user_service

logger = logging.getLogger(__name__)


async def init_defaults():
    """Create the default admin from DEFAULT_ADMIN_* when no admin exists."""
    name = os.getenv("DEFAULT_ADMIN_NAME", "Club Admin")
    email = os.getenv("DEFAULT_ADMIN_EMAIL")
    password = os.getenv("DEFAULT_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("DEFAULT_ADMIN_EMAIL/DEFAULT_ADMIN_PASSWORD not set, skipping admin bootstrap")
        return

    async with AsyncSessionLocal() as session:
        created = await user_service.ensure_default_admin(session, name, email, password)
        await session.commit()

    if created:
        logger.info(f"✓ Created default admin {email}")
    else:
        logger.info("✓ Admin account already exists")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_defaults())
