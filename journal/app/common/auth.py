"""
Bearer-token authentication against Supabase auth.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from fastapi import Header, HTTPException

from journal.app.common import supabase_client

logger = logging.getLogger(__name__)

AUTH_REQUIRED = "Authentication required"


@dataclass
class UserContext:
    """Authenticated caller plus a client scoped to their token."""
    user_id: str
    email: Optional[str]
    token: str
    db: Any


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(authorization: Optional[str] = Header(None)) -> Iterator[UserContext]:
    """
    FastAPI dependency: resolve the caller or fail with 401. Missing Supabase
    configuration is not an auth failure and surfaces as a server error.
    The token-scoped client is closed when the request finishes.
    """
    token = extract_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED)

    auth_client = supabase_client.get_client()
    try:
        resp = auth_client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token rejected by Supabase auth: {e}")
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED) from e

    user = getattr(resp, "user", None) if resp else None
    if user is None:
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED)

    with supabase_client.client_for_token(token) as db:
        yield UserContext(
            user_id=user.id,
            email=getattr(user, "email", None),
            token=token,
            db=db,
        )
