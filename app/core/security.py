"""Password hashing, comparison and policy checks."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from functools import lru_cache

from passlib.context import CryptContext
from passlib.exc import PasswordTruncateError

from app.core.config import get_settings
from app.core.constants import (
    BCRYPT_MAX_BYTES,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_CHARACTER_CLASSES,
    PASSWORD_MIN_LENGTH,
    PASSWORD_SYMBOLS,
)
from app.core.exceptions import InternalFailure, ValidationError

logger = logging.getLogger(__name__)

HASHING_FAILED = "Password hashing failed"
PASSWORD_TOO_MANY_BYTES = f"Password must be at most {BCRYPT_MAX_BYTES} bytes long."

_LETTER = re.compile(r"[a-zA-Z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(f"[{re.escape(PASSWORD_SYMBOLS)}]")


@dataclass(frozen=True)
class PasswordValidation:
    is_valid: bool
    message: str | None = None


class CredentialManager:
    """bcrypt hashing with a configurable work factor.

    Hashing and comparison run in a worker thread so the event loop keeps
    serving other requests while bcrypt burns CPU.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__truncate_error=True,
        )

    async def hash(self, plain: str) -> str:
        if not plain or not plain.strip():
            logger.warning("Refusing to hash an empty password")
            raise InternalFailure(HASHING_FAILED)
        if len(plain.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(PASSWORD_TOO_MANY_BYTES)
        try:
            return await asyncio.to_thread(self._context.hash, plain)
        except PasswordTruncateError as e:
            raise ValidationError(PASSWORD_TOO_MANY_BYTES) from e
        except Exception as e:
            logger.exception("bcrypt hash failed: %s", type(e).__name__)
            raise InternalFailure(HASHING_FAILED) from e

    async def compare(self, plain: str, hashed: str) -> bool:
        """True only on an exact match. Malformed hashes count as a mismatch."""
        if len(plain.encode("utf-8")) > BCRYPT_MAX_BYTES:
            # bcrypt reads only the first 72 bytes; nothing longer is ever hashed
            return False
        try:
            return await asyncio.to_thread(self._context.verify, plain, hashed)
        except Exception as e:
            logger.warning("Password comparison failed: %s", type(e).__name__)
            return False

    @staticmethod
    def validate(password: str) -> PasswordValidation:
        if len(password) < PASSWORD_MIN_LENGTH:
            return PasswordValidation(
                False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."
            )
        if len(password) > PASSWORD_MAX_LENGTH:
            return PasswordValidation(
                False, f"Password must be at most {PASSWORD_MAX_LENGTH} characters long."
            )

        classes = sum(
            1 for pattern in (_LETTER, _DIGIT, _SYMBOL) if pattern.search(password)
        )
        if classes < PASSWORD_MIN_CHARACTER_CLASSES:
            return PasswordValidation(
                False,
                f"Password must contain at least {PASSWORD_MIN_CHARACTER_CLASSES} "
                "of letter/digit/symbol.",
            )
        return PasswordValidation(True)


@lru_cache
def get_credential_manager() -> CredentialManager:
    """Process-wide manager built from settings. Also used as a FastAPI dependency."""
    return CredentialManager(rounds=get_settings().bcrypt_rounds)


async def hash_password(plain: str) -> str:
    return await get_credential_manager().hash(plain)


async def verify_password(plain: str, hashed: str) -> bool:
    return await get_credential_manager().compare(plain, hashed)


def validate_password(password: str) -> PasswordValidation:
    return CredentialManager.validate(password)
