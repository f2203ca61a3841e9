"""Authentication endpoints.

Sign-in happens client-side with Firebase. Clients send the Firebase ID
token as a ``Bearer`` token; these endpoints turn that account into an
adopter profile and read it back.
"""

import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from petcare.config import settings
from petcare.dependencies import get_current_user_id, get_token_claims
from petcare.models.errors import ApiErrorResponse
from petcare.models.profile import AdopterProfile, AdopterRegistration
from petcare.services import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
limiter = Limiter(key_func=get_remote_address)


@router.post(
    "/register",
    response_model=AdopterProfile,
    status_code=201,
    responses={401: {"model": ApiErrorResponse}, 409: {"model": ApiErrorResponse}},
    summary="Create the adopter profile for the signed-in account",
)
@limiter.limit(settings.RATE_LIMIT)
async def register(
    request: Request,
    body: AdopterRegistration,
    claims: dict = Depends(get_token_claims),
) -> AdopterProfile:
    profile = await profile_service.register_adopter(
        claims["uid"], claims.get("email"), body.username, body.photo_url,
    )
    return AdopterProfile(**profile)


@router.get(
    "/me",
    response_model=AdopterProfile,
    responses={401: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
    summary="Get the signed-in adopter",
)
@limiter.limit(settings.RATE_LIMIT)
async def get_current_user(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> AdopterProfile:
    return AdopterProfile(**await profile_service.get_profile(user_id))
