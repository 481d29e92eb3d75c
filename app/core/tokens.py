"""Signed bearer tokens (HS256 JWT) for authenticated tutors."""

from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt
from jwt.utils import base64url_decode, base64url_encode

from app.core.config import get_settings
from app.core.exceptions import AuthenticationFailure, InternalFailure

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired token"


def _has_canonical_signature(token: str) -> bool:
    """
    Lenient base64 decoders ignore the unused low bits of the last character,
    so two spellings can decode to the same signature. Only the canonical one is
    accepted. Tokens that are not three segments are left to jwt.decode.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return True
    signature = parts[2].encode("ascii", errors="replace")
    try:
        return base64url_encode(base64url_decode(signature)) == signature
    except (binascii.Error, ValueError):
        return False


@dataclass(frozen=True)
class TokenPayload:
    """Identity carried by a token: the tutor's id and email."""

    subject_id: int
    email: str

    @classmethod
    def from_claims(cls, claims: dict) -> TokenPayload:
        subject_id = claims["tutor_id"]
        email = claims["email"]
        if not isinstance(subject_id, int) or isinstance(subject_id, bool) or not isinstance(email, str):
            raise ValueError("token claims have the wrong types")
        return cls(subject_id=subject_id, email=email)


class TokenService:
    """Issues and checks tokens signed with a secret handed in at construction."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: timedelta = timedelta(days=7)):
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue(self, payload: TokenPayload, expires_delta: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "tutor_id": payload.subject_id,
            "email": payload.email,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_in),
        }
        try:
            return jwt.encode(claims, self._secret, algorithm=self.algorithm)
        except Exception as e:
            logger.exception("Token signing failed: %s", type(e).__name__)
            raise InternalFailure("Token signing failed") from e

    def verify(self, token: str) -> TokenPayload:
        try:
            if not _has_canonical_signature(token):
                raise jwt.InvalidSignatureError("non-canonical signature encoding")
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
            return TokenPayload.from_claims(claims)
        except (jwt.PyJWTError, KeyError, ValueError) as e:
            logger.info("Token rejected: %s", type(e).__name__)
            raise AuthenticationFailure(INVALID_TOKEN) from e

    @staticmethod
    def decode(token: str) -> TokenPayload | None:
        """Read the payload without checking signature or expiry. Inspection only."""
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
            return TokenPayload.from_claims(claims)
        except (jwt.PyJWTError, KeyError, ValueError, TypeError):
            return None


@lru_cache
def get_token_service() -> TokenService:
    """Token service configured from settings. Override in tests to swap the secret."""
    settings = get_settings()
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.access_token_expire_days),
    )
