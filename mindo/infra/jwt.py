"""HS256 access tokens.

Tokens carry ``sub`` (the user id) plus whatever extra claims the caller adds,
and are scoped to this API by issuer and audience.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

import jwt
from jwt import InvalidTokenError

from mindo.settings import settings

ISSUER = "mindo-api"
AUDIENCE = "mindo-client"
ALGORITHM = "HS256"


def encode_access(
    subject: str,
    claims: Optional[Mapping[str, Any]] = None,
    *,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    body: dict[str, Any] = dict(claims or {})
    body.update(
        sub=subject,
        iss=ISSUER,
        aud=AUDIENCE,
        iat=issued,
        exp=issued + (ttl or timedelta(minutes=settings.access_ttl_minutes)),
    )
    return jwt.encode(body, settings.secret_key, algorithm=ALGORITHM)


def decode_access(token: str) -> dict[str, Any]:
    """Validate signature, expiry, issuer and audience; raises ``InvalidTokenError``."""
    payload = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        issuer=ISSUER,
        leeway=5,
        options={"require": ["exp", "iat", "iss", "aud", "sub"]},
    )
    if not str(payload.get("sub") or "").strip():
        raise InvalidTokenError("empty subject")
    return payload
