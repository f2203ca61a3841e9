"""Shared FastAPI dependencies.

Bearer tokens are Firebase ID tokens. Without ``FIREBASE_CREDENTIALS`` the
app runs in mock auth mode: any non-empty token is accepted and the token
value itself is used as the user id.
"""

import logging

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth

from petcare.config import settings
from petcare.db.firestore import get_firebase_app, is_mock_mode

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer()


def _mock_claims(token: str) -> dict | None:
    if not token:
        return None
    return {"uid": token, "email": f"{token}@mock.local"}


def verify_token(token: str) -> dict | None:
    """Return ``{"uid", "email"}`` for a valid token, or None."""
    if is_mock_mode():
        return _mock_claims(token)
    try:
        decoded = firebase_auth.verify_id_token(token, app=get_firebase_app())
    except Exception as e:
        logger.warning("Firebase token verification failed: %s", e)
        return None
    return {"uid": decoded["uid"], "email": decoded.get("email")}


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> dict:
    """Verify the Bearer token and return its claims.

    ``/auth/register`` uses the email claim; everything else only needs the uid.
    """
    claims = verify_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": {"code": "invalid_token", "message": "Invalid or expired token"}},
        )
    return claims


async def get_current_user_id(
    claims: dict = Depends(get_token_claims),
) -> str:
    return claims["uid"]


async def get_pagination(
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, alias="pageSize", le=settings.MAX_PAGE_SIZE,
        description="Items per page",
    ),
) -> tuple[int, int]:
    """Return ``(page, page_size)``; values below 1 are rejected by the catalog."""
    return page, page_size
