"""Bearer token parsing, JWT validation and path traversal guards."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Mapping

import jwt

from tubely.utils.exceptions import BadRequestError, UnauthorizedError

TOKEN_ISSUER = "tubely-access"
JWT_ALGORITHM = "HS256"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    A missing header is an authentication failure; a header that is present
    but not in bearer form is a malformed request.
    """
    auth_header = headers.get("authorization")
    if not auth_header:
        raise UnauthorizedError("Couldn't find JWT")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise BadRequestError("Malformed authorization header")
    return parts[1]


def make_jwt(user_id: str, secret: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign an access token for ``user_id``."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": TOKEN_ISSUER,
        "sub": user_id,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def validate_jwt(token: str, secret: str) -> str:
    """Verify an access token and return the user id it was issued to."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("JWT has expired")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(f"Invalid JWT: {e}", user_message="Couldn't validate JWT")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("JWT has no subject")
    return user_id


def parse_video_id(video_id: str | None) -> str:
    """Normalise a video id path segment; ids are UUIDs."""
    if not video_id or not video_id.strip():
        raise BadRequestError("Invalid video ID")
    try:
        return str(uuid.UUID(video_id.strip()))
    except ValueError:
        raise BadRequestError("Invalid video ID")


def safe_join(base_dir: str, *parts: str) -> Path:
    """
    Join path parts onto a base directory.
    Raises ValueError if the result escapes the base directory.
    """
    base = Path(base_dir).resolve()
    target = (base / Path(*parts)).resolve()
    if target != base and base not in target.parents:
        raise ValueError("Access denied: path traversal detected")
    return target
