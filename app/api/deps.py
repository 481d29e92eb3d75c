"""Shared route dependencies: the bearer-token gate for protected endpoints."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request

from app.core.exceptions import AuthenticationFailure
from app.core.tokens import TokenPayload, TokenService, get_token_service

ACCESS_TOKEN_REQUIRED = "Access token required"
INVALID_TOKEN = "Invalid token"


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token part of an `Authorization: Bearer <token>` header, else None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def require_token(
    request: Request,
    authorization: str | None = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """
    Admission check for protected routes.
    No token -> 401, bad or expired token -> 403, otherwise the payload is
    stored on request.state.user and handed to the endpoint.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail=ACCESS_TOKEN_REQUIRED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = tokens.verify(token)
    except AuthenticationFailure:
        raise HTTPException(status_code=403, detail=INVALID_TOKEN)
    request.state.user = payload
    return payload
