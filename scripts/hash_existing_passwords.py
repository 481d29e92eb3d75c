"""Hash any tutor password still stored as plaintext.

Run once after importing legacy tutor rows:
    python scripts/hash_existing_passwords.py
"""

import asyncio
import logging
import os
import sys

# Add parent directory to path so we can import app modules
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.constants import BCRYPT_PREFIXES
from app.core.exceptions import ValidationError
from app.core.logging import setup_logging
from app.core.security import CredentialManager, get_credential_manager
from app.db.session import async_session_maker, engine
from app.models.tutor import Tutor

logger = logging.getLogger("hash_existing_passwords")


def is_hashed(stored: str) -> bool:
    return stored.startswith(BCRYPT_PREFIXES)


async def hash_existing_passwords(session: AsyncSession, credentials: CredentialManager) -> int:
    """Replace plaintext passwords with bcrypt hashes. Returns how many were rehashed."""
    result = await session.execute(select(Tutor).order_by(Tutor.id))
    tutors = list(result.scalars().all())
    logger.info("Found %d tutors", len(tutors))

    updated = skipped = 0
    for tutor in tutors:
        if is_hashed(tutor.password):
            logger.info("Tutor %s: already hashed", tutor.id)
            continue
        if not tutor.password or not tutor.password.strip():
            logger.warning("Tutor %s: blank password, skipped", tutor.id)
            skipped += 1
            continue
        try:
            tutor.password = await credentials.hash(tutor.password)
        except ValidationError as e:
            logger.warning("Tutor %s skipped: %s", tutor.id, e.message)
            skipped += 1
            continue
        updated += 1
        logger.info("Tutor %s: password hashed", tutor.id)

    await session.commit()
    if skipped:
        logger.warning("%d tutors still need a password reset", skipped)
    return updated


async def main():
    setup_logging(get_settings().log_level)

    async with async_session_maker() as session:
        try:
            updated = await hash_existing_passwords(session, get_credential_manager())
            logger.info("Done, %d passwords hashed", updated)
        except Exception:
            await session.rollback()
            logger.exception("Hashing existing passwords failed")
            raise
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
